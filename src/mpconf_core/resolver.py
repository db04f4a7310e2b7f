"""Expression resolution with cycle detection and cooperative cancellation.

Resolution outcomes are tri-state (:class:`ResolveStatus`):

- ``RESOLVED``: every expression was substituted.
- ``ABSENT``: the key is undefined, a reference has neither a value nor a
  default, or a cycle blocks resolution. A partially substituted string is
  never returned.
- ``CANCELLED``: the caller's token was cancelled; the answer is stale and
  must be discarded.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Generator, List, Optional

from .errors import ResolutionCancelled
from .graph import PropertyGraph
from .keys import profile_of, reference_candidates
from .nodes import Document, Node, NodeKind
from .parser import parse_value
from .project_info import ProjectInfo

logger = logging.getLogger(__name__)

PropertyLookup = Callable[[str], Optional[str]]

# A resolution step yields the sub-steps it waits on and returns its text.
_Step = Generator[Any, Optional[str], Optional[str]]


class ResolveStatus(str, Enum):
    RESOLVED = "resolved"
    ABSENT = "absent"
    CANCELLED = "cancelled"


class AbsentReason(str, Enum):
    CYCLE = "cycle"
    MISSING = "missing"
    UNRESOLVED_REFERENCE = "unresolved-reference"


class CycleScope(str, Enum):
    """How far a reference cycle poisons resolution.

    ``PROJECT``: any cycle makes every property absent.
    ``COMPONENT``: only properties from which a cycle is reachable.
    """

    PROJECT = "project"
    COMPONENT = "component"


@dataclass(frozen=True)
class Resolution:
    status: ResolveStatus
    value: Optional[str] = None
    reason: Optional[AbsentReason] = None

    @classmethod
    def resolved(cls, value: str) -> "Resolution":
        return cls(ResolveStatus.RESOLVED, value=value)

    @classmethod
    def absent(cls, reason: AbsentReason) -> "Resolution":
        return cls(ResolveStatus.ABSENT, reason=reason)

    @classmethod
    def cancelled(cls) -> "Resolution":
        return cls(ResolveStatus.CANCELLED)

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolveStatus.RESOLVED

    @property
    def is_absent(self) -> bool:
        return self.status is ResolveStatus.ABSENT

    @property
    def is_cancelled(self) -> bool:
        return self.status is ResolveStatus.CANCELLED


class CancellationToken:
    """Thread-safe cancellation flag polled at every resolution step."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def check_cancelled(self, key: Optional[str] = None) -> None:
        if self._event.is_set():
            raise ResolutionCancelled(key)


class PropertyResolver:
    """Resolve ``${name:default}`` expressions against layered lookups.

    Lookup order for a reference made by a property with profile ``p``:
    ``%p.name`` then ``name`` (each resolved recursively), then the
    project metadata default, then the expression's own default.
    """

    def __init__(
        self,
        lookup: PropertyLookup,
        graph: PropertyGraph,
        project_info: Optional[ProjectInfo] = None,
        cycle_scope: CycleScope = CycleScope.PROJECT,
    ) -> None:
        self.lookup = lookup
        self.graph = graph
        self.project_info = project_info
        self.cycle_scope = cycle_scope
        self._parsed: Dict[str, Document] = {}

    def resolve(self, key: str, token: Optional[CancellationToken] = None) -> Resolution:
        """Resolve the value defined for ``key``."""
        token = token or CancellationToken()
        try:
            token.check_cancelled(key)
            if self._blocked_by_cycle(key):
                return Resolution.absent(AbsentReason.CYCLE)
            text = self.lookup(key)
            if text is None:
                return Resolution.absent(AbsentReason.MISSING)
            document = self._parse(text)
            value = document.first_child(document.root, NodeKind.PROPERTY_VALUE)
            step = self._render(document, value, profile_of(key), token, frozenset({key}))
            return self._finish(key, self._run(step))
        except ResolutionCancelled:
            logger.debug("Resolution of %s cancelled", key)
            return Resolution.cancelled()

    def resolve_node(
        self,
        key: str,
        document: Document,
        value: Optional[Node],
        token: Optional[CancellationToken] = None,
    ) -> Resolution:
        """Resolve an already parsed value node that belongs to ``key``."""
        token = token or CancellationToken()
        try:
            token.check_cancelled(key)
            if self._blocked_by_cycle(key):
                return Resolution.absent(AbsentReason.CYCLE)
            if value is None:
                return Resolution.absent(AbsentReason.MISSING)
            step = self._render(document, value, profile_of(key), token, frozenset({key}))
            return self._finish(key, self._run(step))
        except ResolutionCancelled:
            logger.debug("Resolution of %s cancelled", key)
            return Resolution.cancelled()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish(self, key: str, rendered: Optional[str]) -> Resolution:
        if rendered is None:
            logger.debug("Property %s has an unresolved reference", key)
            return Resolution.absent(AbsentReason.UNRESOLVED_REFERENCE)
        return Resolution.resolved(rendered)

    def _blocked_by_cycle(self, key: str) -> bool:
        if self.cycle_scope is CycleScope.COMPONENT:
            return self.graph.reaches_cycle(key)
        return not self.graph.is_acyclic()

    def _parse(self, text: str) -> Document:
        document = self._parsed.get(text)
        if document is None:
            document = parse_value(text)
            self._parsed[text] = document
        return document

    def _run(self, step: _Step) -> Optional[str]:
        """Drive a resolution step and every step it waits on.

        Steps yield the sub-step whose result they need; pending steps live
        on an explicit stack so reference chains and nested defaults of any
        length do not grow the interpreter stack.
        """
        stack: List[_Step] = [step]
        result: Optional[str] = None
        while stack:
            try:
                pending = stack[-1].send(result)
            except StopIteration as done:
                stack.pop()
                result = done.value
                continue
            stack.append(pending)
            result = None
        return result

    def _resolve_key(self, key: str, token: CancellationToken, active: FrozenSet[str]) -> _Step:
        token.check_cancelled(key)
        if key in active:
            # Lookup data the graph did not cover still must not loop forever.
            return None
        text = self.lookup(key)
        if text is None:
            return None
        document = self._parse(text)
        value = document.first_child(document.root, NodeKind.PROPERTY_VALUE)
        return (yield self._render(document, value, profile_of(key), token, active | {key}))

    def _render(
        self,
        document: Document,
        node: Optional[Node],
        profile: Optional[str],
        token: CancellationToken,
        active: FrozenSet[str],
    ) -> _Step:
        if node is None:
            return ""
        parts = []
        for child in document.children_of(node):
            token.check_cancelled()
            if child.kind is NodeKind.EXPRESSION:
                rendered = yield self._render_expression(document, child, profile, token, active)
                if rendered is None:
                    return None
                parts.append(rendered)
            else:
                parts.append(document.logical_text_of(child))
        return "".join(parts)

    def _render_expression(
        self,
        document: Document,
        expression: Node,
        profile: Optional[str],
        token: CancellationToken,
        active: FrozenSet[str],
    ) -> _Step:
        if not expression.closed:
            return document.logical_text_of(expression)

        reference = document.first_child(expression, NodeKind.EXPRESSION_REFERENCE)
        name = document.logical_text_of(reference).strip() if reference is not None else ""
        for candidate in reference_candidates(name, profile):
            resolved = yield self._resolve_key(candidate, token, active)
            if resolved is not None:
                return resolved

        if self.project_info is not None:
            known = self.project_info.default_value(name)
            if known is not None:
                return known

        default = document.first_child(expression, NodeKind.EXPRESSION_DEFAULT)
        if default is None:
            return None
        return (yield self._render(document, default, profile, token, active))
