import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from showast.analysis.errors import STAGE_START, AnalysisError, AnalysisInProgressError
from showast.analysis.events import EventEmitter
from showast.analysis.logging import log_analysis_complete, log_analysis_error
from showast.analysis.payload import parse_analysis_output
from showast.analysis.service import ParserService
from showast.config import settings
from showast.observability import set_operation_context
from showast.tree import (
    NodeIndex,
    ParseError,
    TreeNode,
    build_forest,
    locate,
    staged_expand,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeRef:
    """Persistent reference to a node; valid only within the epoch it was taken in."""

    epoch: int
    hash_code: int


@dataclass(frozen=True)
class AnalysisSnapshot:
    """Everything one analysis produced. Replaced as a whole, never mutated."""

    epoch: int
    source_id: str | None = None
    roots: tuple[TreeNode, ...] = ()
    index: NodeIndex = field(default_factory=dict)
    errors: tuple[ParseError, ...] = ()
    orphans: tuple[int, ...] = ()


class AnalysisSession:
    """Owns the current analysis of one document and notifies observers.

    Pass one instance to every component that needs the current tree;
    there is no global state.
    """

    def __init__(
        self,
        service: ParserService | None = None,
        *,
        select_root: bool | None = None,
    ) -> None:
        self._service = service or ParserService()
        self._select_root = (
            settings.SELECT_ROOT_ON_ANALYZE if select_root is None else select_root
        )
        self._lock = threading.RLock()
        self._epoch = 0
        self._snapshot = AnalysisSnapshot(epoch=0)
        self._selection: TreeNode | None = None
        self._analyzing = False

        self.on_selection_changed: EventEmitter[TreeNode | None] = EventEmitter(
            "selection-changed"
        )
        self.on_analyzing_changed: EventEmitter[bool] = EventEmitter("analyzing-changed")

    def __enter__(self) -> "AnalysisSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def service(self) -> ParserService:
        return self._service

    @property
    def snapshot(self) -> AnalysisSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def epoch(self) -> int:
        return self.snapshot.epoch

    @property
    def roots(self) -> list[TreeNode]:
        return list(self.snapshot.roots)

    @property
    def index(self) -> NodeIndex:
        return self.snapshot.index

    @property
    def parse_errors(self) -> list[ParseError]:
        return list(self.snapshot.errors)

    @property
    def source_id(self) -> str | None:
        return self.snapshot.source_id

    @property
    def has_data(self) -> bool:
        return bool(self.snapshot.roots)

    @property
    def is_analyzing(self) -> bool:
        with self._lock:
            return self._analyzing

    @property
    def current_node(self) -> TreeNode | None:
        with self._lock:
            return self._selection

    def _set_analyzing(self, analyzing: bool) -> None:
        with self._lock:
            self._analyzing = analyzing
        self.on_analyzing_changed.fire(analyzing)

    def _replace_snapshot(self, snapshot_factory: Callable[[int], AnalysisSnapshot]) -> None:
        with self._lock:
            self._epoch += 1
            self._snapshot = snapshot_factory(self._epoch)
            roots = self._snapshot.roots
            self._selection = roots[0] if roots and self._select_root else None
            selection = self._selection
        self.on_selection_changed.fire(selection)

    def analyze(self, source_text: str, source_id: str | None = None) -> list[TreeNode]:
        """Parse ``source_text`` and make the result the current analysis.

        Raises:
            AnalysisInProgressError: If another analysis is running.
            AnalysisError: If any pipeline stage fails; the view is cleared.
        """
        with self._lock:
            if self._analyzing:
                raise AnalysisInProgressError()
            self._analyzing = True
        self.on_analyzing_changed.fire(True)

        set_operation_context("analyze")
        started = time.perf_counter()
        try:
            try:
                raw = self._service.analyze_raw(source_text)
                payload = parse_analysis_output(raw)
                forest = build_forest(payload.nodes)
            except AnalysisError as e:
                latency_ms = (time.perf_counter() - started) * 1000
                logger.warning("Analysis failed at %s stage: %s", e.stage, e.message)
                log_analysis_error(source_id, e.stage, e.message, latency_ms)
                self._replace_snapshot(lambda epoch: AnalysisSnapshot(epoch=epoch))
                raise

            self._replace_snapshot(
                lambda epoch: AnalysisSnapshot(
                    epoch=epoch,
                    source_id=source_id,
                    roots=tuple(forest.roots),
                    index=forest.index,
                    errors=tuple(payload.errors),
                    orphans=tuple(forest.orphans),
                )
            )
            snapshot = self.snapshot
            log_analysis_complete(
                source_id,
                snapshot.epoch,
                len(snapshot.index),
                len(snapshot.errors),
                len(snapshot.orphans),
                (time.perf_counter() - started) * 1000,
            )
            return list(snapshot.roots)
        finally:
            self._set_analyzing(False)

    def analyze_file(self, path: str | Path) -> list[TreeNode]:
        file_path = Path(path)
        try:
            content = file_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise AnalysisError(STAGE_START, f"Cannot read file {file_path}: {e}") from e
        return self.analyze(content, source_id=str(file_path.resolve()))

    def clear(self) -> None:
        """Drop the current analysis and selection."""
        self._replace_snapshot(lambda epoch: AnalysisSnapshot(epoch=epoch))

    def locate(self, line: int, column: int) -> TreeNode | None:
        """Innermost node enclosing the 1-based (line, column) in the current analysis."""
        return locate(self.snapshot.index, line, column)

    def _owns(self, node: TreeNode) -> bool:
        return self.snapshot.index.get(node.hash_code) is node

    def select(self, node: TreeNode | None) -> None:
        """Make ``node`` the current node and notify observers.

        Raises:
            ValueError: If ``node`` is not part of the current analysis.
        """
        if node is not None and not self._owns(node):
            raise ValueError("Node does not belong to the current analysis")
        with self._lock:
            self._selection = node
        self.on_selection_changed.fire(node)

    def select_at(self, line: int, column: int) -> TreeNode | None:
        """Select the innermost node at a position; selection is unchanged if none."""
        node = self.locate(line, column)
        if node is not None:
            self.select(node)
        return node

    def ref(self, node: TreeNode) -> NodeRef:
        snapshot = self.snapshot
        if snapshot.index.get(node.hash_code) is not node:
            raise ValueError("Node does not belong to the current analysis")
        return NodeRef(epoch=snapshot.epoch, hash_code=node.hash_code)

    def resolve(self, ref: NodeRef) -> TreeNode | None:
        """Return the referenced node, or None once a newer analysis replaced it."""
        snapshot = self.snapshot
        if ref.epoch != snapshot.epoch:
            return None
        return snapshot.index.get(ref.hash_code)

    def expand_all(
        self,
        reveal: Callable[[TreeNode], object],
        *,
        delay_seconds: float | None = None,
    ) -> int:
        delay = settings.EXPAND_DELAY_SECONDS if delay_seconds is None else delay_seconds
        return staged_expand(self.roots, reveal, delay_seconds=delay)

    def close(self) -> None:
        self._service.dispose()


__all__ = ["AnalysisSession", "AnalysisSnapshot", "NodeRef"]
