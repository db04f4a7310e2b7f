"""Reference graph between configuration properties.

Vertices are qualified property names; an edge ``a -> b`` means the value
of ``a`` contains an expression referencing ``b``. The acyclicity check is
a pure function of the (vertices, edges) snapshot and is cached against a
generation counter that every mutation bumps.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .keys import profile_of, reference_candidates
from .nodes import Document, Node, NodeKind
from .parser import parse_value

logger = logging.getLogger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


def references_in(document: Document, node: Optional[Node]) -> List[str]:
    """Referenced names of every expression under ``node``, nested defaults
    included, in document order."""
    if node is None:
        return []
    names = []
    for _, current in document.walk(node):
        if current.kind is NodeKind.EXPRESSION_REFERENCE:
            names.append(document.logical_text_of(current).strip())
    return names


def reference_target(reference: str, profile: Optional[str], is_defined: Callable[[str], bool]) -> str:
    """Key an expression reference points at, profile-first."""
    for candidate in reference_candidates(reference, profile):
        if is_defined(candidate):
            return candidate
    return reference


class PropertyGraph:
    """Directed graph of property references."""

    def __init__(self) -> None:
        self._edges: Dict[str, Set[str]] = {}
        self._generation = 0
        self._acyclic: Optional[Tuple[int, bool]] = None
        self._reaches: Dict[str, bool] = {}
        self._reaches_generation = -1

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> "PropertyGraph":
        """Build a graph from qualified name -> raw value text."""
        graph = cls()
        for name, text in values.items():
            graph.add_vertex(name)
            if "${" not in text:
                continue
            document = parse_value(text)
            value = document.first_child(document.root, NodeKind.PROPERTY_VALUE)
            profile = profile_of(name)
            targets = [
                reference_target(reference, profile, values.__contains__)
                for reference in references_in(document, value)
            ]
            graph.add_property(name, targets)
        return graph

    @classmethod
    def from_document(cls, document: Document) -> "PropertyGraph":
        return cls.from_values(document.to_mapping())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    def _bump(self) -> None:
        self._generation += 1

    def add_vertex(self, name: str) -> None:
        if name not in self._edges:
            self._edges[name] = set()
            self._bump()

    def add_edge(self, source: str, target: str) -> None:
        self.add_vertex(source)
        self.add_vertex(target)
        if target not in self._edges[source]:
            self._edges[source].add(target)
            self._bump()

    def add_property(self, name: str, references: Iterable[str]) -> None:
        """Replace the outgoing edges of ``name`` with ``references``."""
        self.add_vertex(name)
        self._edges[name] = set()
        for target in references:
            self.add_vertex(target)
            self._edges[name].add(target)
        self._bump()

    def remove_property(self, name: str) -> None:
        if name in self._edges:
            del self._edges[name]
            for targets in self._edges.values():
                targets.discard(name)
            self._bump()

    def clear(self) -> None:
        self._edges.clear()
        self._bump()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def vertices(self) -> List[str]:
        return sorted(self._edges)

    def edges(self) -> List[Tuple[str, str]]:
        return sorted((source, target) for source, targets in self._edges.items() for target in targets)

    def references_of(self, name: str) -> List[str]:
        return sorted(self._edges.get(name, ()))

    def __contains__(self, name: object) -> bool:
        return name in self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def is_acyclic(self) -> bool:
        if self._acyclic is not None and self._acyclic[0] == self._generation:
            return self._acyclic[1]
        cycle = self._find_cycle(sorted(self._edges))
        if cycle:
            logger.debug("Property cycle detected: %s", " -> ".join(cycle))
        self._acyclic = (self._generation, cycle is None)
        return cycle is None

    def find_cycle(self) -> Optional[List[str]]:
        """Return one cycle as ``[a, b, ..., a]``, or ``None``."""
        return self._find_cycle(sorted(self._edges))

    def reaches_cycle(self, name: str) -> bool:
        """True if a cycle is reachable from ``name`` (``name`` included)."""
        if self._reaches_generation != self._generation:
            self._reaches = {}
            self._reaches_generation = self._generation
        if name not in self._reaches:
            self._reaches[name] = self._find_cycle([name]) is not None
        return self._reaches[name]

    def _find_cycle(self, roots: Iterable[str]) -> Optional[List[str]]:
        # Iterative three-colour DFS; deep reference chains must not hit
        # the interpreter recursion limit.
        color: Dict[str, int] = {}
        for root in roots:
            if color.get(root, _WHITE) != _WHITE:
                continue
            color[root] = _GREY
            path = [root]
            stack = [iter(sorted(self._edges.get(root, ())))]
            while stack:
                advanced = False
                for child in stack[-1]:
                    state = color.get(child, _WHITE)
                    if state == _GREY:
                        return path[path.index(child) :] + [child]
                    if state == _WHITE:
                        color[child] = _GREY
                        path.append(child)
                        stack.append(iter(sorted(self._edges.get(child, ()))))
                        advanced = True
                        break
                if not advanced:
                    color[path.pop()] = _BLACK
                    stack.pop()
        return None
