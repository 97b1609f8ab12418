import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_DOCS_PATH = Path(__file__).parent / "ast_docs.yaml"

_INLINE_CODE_RE = re.compile(r"<c>(.*?)</c>", re.DOTALL)


class DocStoreError(Exception):
    """Raised when a documentation file cannot be decoded."""


@dataclass(frozen=True)
class PropertyDoc:
    name: str
    type_name: str = ""
    summary: str = ""
    enum_values: tuple[str, ...] = ()


@dataclass(frozen=True)
class TypeDoc:
    name: str
    summary: str = ""
    properties: tuple[PropertyDoc, ...] = field(default_factory=tuple)

    def get_property(self, name: str) -> PropertyDoc | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


def format_doc_text(text: str) -> str:
    """Render ``<c>...</c>`` inline code markers as backtick spans."""
    return _INLINE_CODE_RE.sub(lambda m: f"`{m.group(1)}`", text or "")


def _enum_values(raw: Any) -> tuple[str, ...]:
    # Generated docs use "" for non-enum properties
    if isinstance(raw, list):
        return tuple(str(v) for v in raw)
    if isinstance(raw, str) and raw:
        return (raw,)
    return ()


def _parse_entry(entry: Any) -> TypeDoc | None:
    if not isinstance(entry, dict) or not entry.get("Name"):
        return None
    raw_properties = entry.get("Properties")
    if isinstance(raw_properties, dict):
        raw_properties = [raw_properties]
    elif not isinstance(raw_properties, list):
        raw_properties = []
    properties = []
    for prop in raw_properties:
        if not isinstance(prop, dict) or not prop.get("Name"):
            continue
        properties.append(
            PropertyDoc(
                name=str(prop["Name"]),
                type_name=str(prop.get("TypeName") or ""),
                summary=str(prop.get("Summary") or ""),
                enum_values=_enum_values(prop.get("EnumValues")),
            )
        )
    return TypeDoc(
        name=str(entry["Name"]),
        summary=str(entry.get("Summary") or ""),
        properties=tuple(properties),
    )


class DocStore:
    """Per-type documentation for AST node kinds and their properties."""

    def __init__(self) -> None:
        self._by_type: dict[str, TypeDoc] = {}

    def __len__(self) -> int:
        return len(self._by_type)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._by_type

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "DocStore":
        store = cls()
        store.load(path or DEFAULT_DOCS_PATH)
        return store

    def load(self, path: Path | str) -> None:
        """Replace the store contents with the entries in ``path``.

        ``.yaml``/``.yml`` files are read with PyYAML, anything else as JSON.
        A missing file leaves the store empty.

        Raises:
            DocStoreError: If the file exists but is not a list of entries.
        """
        doc_path = Path(path)
        if not doc_path.is_file():
            logger.warning("AST docs not found at %s", doc_path)
            self._by_type.clear()
            return

        try:
            text = doc_path.read_text(encoding="utf-8-sig")
            if doc_path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise DocStoreError(f"Failed to load AST docs from {doc_path}: {e}") from e

        if not isinstance(data, list):
            raise DocStoreError(
                f"AST docs in {doc_path} must be a list of entries, got {type(data).__name__}"
            )

        self._by_type.clear()
        for entry in data:
            doc = _parse_entry(entry)
            if doc is not None:
                self._by_type[doc.name] = doc
        logger.debug("Loaded AST docs: %d types", len(self._by_type))

    def get(self, type_name: str) -> TypeDoc | None:
        return self._by_type.get(type_name)

    def type_summary(self, type_name: str) -> str | None:
        doc = self._by_type.get(type_name)
        return (doc.summary or None) if doc else None

    def display_type_name(self, type_name: str) -> str | None:
        doc = self._by_type.get(type_name)
        return doc.name if doc else None

    def property_summary(self, type_name: str, prop_name: str) -> str | None:
        doc = self._by_type.get(type_name)
        prop = doc.get_property(prop_name) if doc else None
        return (prop.summary or None) if prop else None

    def property_type_name(self, type_name: str, prop_name: str) -> str | None:
        doc = self._by_type.get(type_name)
        prop = doc.get_property(prop_name) if doc else None
        return (prop.type_name or None) if prop else None


__all__ = [
    "DEFAULT_DOCS_PATH",
    "DocStore",
    "DocStoreError",
    "PropertyDoc",
    "TypeDoc",
    "format_doc_text",
]
