from dataclasses import dataclass, field
from typing import Any

# Wire caps applied by AstParse.ps1 and re-applied on reconstruction.
NODE_TEXT_LIMIT = 100
PROPERTY_VALUE_LIMIT = 200
ELLIPSIS = "..."


def truncate_text(value: str, limit: int) -> str:
    """Cut ``value`` to ``limit`` characters plus an ellipsis marker.

    Idempotent: an already truncated value is returned unchanged.
    """
    if len(value) <= limit:
        return value
    return value[:limit] + ELLIPSIS


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (OverflowError, ValueError):
            return default
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class NodeProperty:
    """A (name, stringified value, declared type) triple of an AST node."""

    name: str
    value: str
    type_name: str

    @classmethod
    def from_wire(cls, payload: Any) -> "NodeProperty | None":
        if not isinstance(payload, dict):
            return None
        name = _as_str(payload.get("Name"))
        if not name:
            return None
        return cls(
            name=name,
            value=_as_str(payload.get("Value")),
            type_name=_as_str(payload.get("TypeName")),
        )

    def to_wire(self) -> dict[str, str]:
        return {"Name": self.name, "Value": self.value, "TypeName": self.type_name}


@dataclass(frozen=True)
class SerializedNode:
    """One parse-tree node as emitted by the parser script (flat wire form)."""

    hash_code: int
    parent_hash_code: int | None
    kind: str
    text: str
    extent_string: str
    start_line: int  # 1-indexed
    start_column: int  # 1-indexed
    end_line: int  # 1-indexed
    end_column: int  # 1-indexed
    text_length: int
    properties: tuple[NodeProperty, ...] = ()
    node_id: str = ""

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> "SerializedNode":
        """Build from the JSON object written by AstParse.ps1.

        Raises:
            ValueError: If the object has no usable ``hashCode``.
        """
        hash_code = _as_optional_int(payload.get("hashCode"))
        if hash_code is None:
            raise ValueError("node is missing hashCode")

        raw_properties = payload.get("properties")
        if isinstance(raw_properties, dict):
            # ConvertTo-Json collapses single-item arrays
            raw_properties = [raw_properties]
        elif not isinstance(raw_properties, list):
            raw_properties = []
        properties = tuple(
            prop
            for prop in (NodeProperty.from_wire(item) for item in raw_properties)
            if prop is not None
        )

        return cls(
            hash_code=hash_code,
            parent_hash_code=_as_optional_int(payload.get("parentHashCode")),
            kind=_as_str(payload.get("type")),
            text=_as_str(payload.get("text")),
            extent_string=_as_str(payload.get("extentString")),
            start_line=_as_int(payload.get("StartLineNumber")),
            start_column=_as_int(payload.get("StartColumnNumber")),
            end_line=_as_int(payload.get("EndLineNumber")),
            end_column=_as_int(payload.get("EndColumnNumber")),
            text_length=_as_int(payload.get("textLength")),
            properties=properties,
            node_id=_as_str(payload.get("id")),
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.node_id,
            "hashCode": self.hash_code,
            "parentHashCode": self.parent_hash_code,
            "type": self.kind,
            "text": self.text,
            "extentString": self.extent_string,
            "StartLineNumber": self.start_line,
            "StartColumnNumber": self.start_column,
            "EndLineNumber": self.end_line,
            "EndColumnNumber": self.end_column,
            "textLength": self.text_length,
            "properties": [prop.to_wire() for prop in self.properties],
        }


@dataclass(eq=False)
class TreeNode:
    """In-memory AST node owned by its parent's ``children`` list.

    Compared by identity: two nodes are equal only if they are the same object.
    """

    hash_code: int
    parent_hash_code: int | None
    kind: str
    text: str
    extent_string: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    text_length: int
    properties: tuple[NodeProperty, ...] = ()
    node_id: str = ""
    children: list["TreeNode"] = field(default_factory=list)
    depth: int = 0

    @classmethod
    def from_serialized(cls, node: SerializedNode) -> "TreeNode":
        return cls(
            hash_code=node.hash_code,
            parent_hash_code=node.parent_hash_code,
            kind=node.kind,
            text=truncate_text(node.text, NODE_TEXT_LIMIT),
            extent_string=node.extent_string,
            start_line=node.start_line,
            start_column=node.start_column,
            end_line=node.end_line,
            end_column=node.end_column,
            text_length=node.text_length,
            properties=tuple(
                NodeProperty(
                    name=prop.name,
                    value=truncate_text(prop.value, PROPERTY_VALUE_LIMIT),
                    type_name=prop.type_name,
                )
                for prop in node.properties
            ),
            node_id=node.node_id,
        )

    @property
    def is_root(self) -> bool:
        return self.parent_hash_code is None

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def contains(self, line: int, column: int) -> bool:
        """Whether the 1-based (line, column) falls inside this node's extent.

        Both ends are inclusive.
        """
        starts_before = self.start_line < line or (
            self.start_line == line and self.start_column <= column
        )
        ends_after = self.end_line > line or (self.end_line == line and self.end_column >= column)
        return starts_before and ends_after

    def get_property(self, name: str) -> NodeProperty | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def location_str(self) -> str:
        return f"{self.start_line}:{self.start_column}-{self.end_line}:{self.end_column}"

    def to_serialized(self) -> SerializedNode:
        return SerializedNode(
            hash_code=self.hash_code,
            parent_hash_code=self.parent_hash_code,
            kind=self.kind,
            text=self.text,
            extent_string=self.extent_string,
            start_line=self.start_line,
            start_column=self.start_column,
            end_line=self.end_line,
            end_column=self.end_column,
            text_length=self.text_length,
            properties=self.properties,
            node_id=self.node_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Nested JSON-friendly form including children."""
        payload = self.to_serialized().to_wire()
        payload["children"] = [child.to_dict() for child in self.children]
        return payload


@dataclass(frozen=True)
class ParseError:
    """Syntax error reported by the parser alongside a still-valid node list."""

    message: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def from_wire(cls, payload: Any) -> "ParseError | None":
        if not isinstance(payload, dict):
            return None
        return cls(
            message=_as_str(payload.get("message")),
            start_line=_as_int(payload.get("startLine")),
            start_column=_as_int(payload.get("startColumn")),
            end_line=_as_int(payload.get("endLine")),
            end_column=_as_int(payload.get("endColumn")),
        )

    def to_display_str(self) -> str:
        return f"{self.start_line}:{self.start_column}: {self.message}"


NodeIndex = dict[int, TreeNode]


@dataclass
class Forest:
    """Result of one reconstruction pass."""

    roots: list[TreeNode]
    index: NodeIndex
    orphans: list[int] = field(default_factory=list)
    """Identity hashes of nodes dropped because their parent did not resolve."""

    def __len__(self) -> int:
        return len(self.index)
