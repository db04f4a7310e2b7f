"""Tree model for properties documents.

Every node lives in an arena owned by its :class:`Document`. Nodes refer
to their parent and children by arena index, never by object reference,
so a document holds no reference cycles. Node behaviour is selected by
matching on :class:`NodeKind` instead of through subclasses.

Offsets are character offsets into the raw document text. A node whose
``end`` is :data:`UNTERMINATED` was cut short by the end of input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from .keys import qualified_name, split_profile, strip_continuations

if TYPE_CHECKING:
    from .graph import PropertyGraph
    from .project_info import ProjectInfo
    from .resolver import CancellationToken, Resolution

UNTERMINATED = -1


class NodeKind(str, Enum):
    """Discriminant of a tree node."""

    DOCUMENT = "Document"
    COMMENT = "Comment"
    PROPERTY = "Property"
    PROPERTY_KEY = "PropertyKey"
    DELIMITER_ASSIGN = "DelimiterAssign"
    PROPERTY_VALUE = "PropertyValue"
    VALUE_LITERAL = "ValueLiteral"
    EXPRESSION = "Expression"
    EXPRESSION_REFERENCE = "ExpressionReference"
    EXPRESSION_DEFAULT = "ExpressionDefault"


# Kinds whose offset lookup searches their own children.
_CONTAINERS = (
    NodeKind.PROPERTY_VALUE,
    NodeKind.EXPRESSION,
    NodeKind.EXPRESSION_DEFAULT,
)


@dataclass(eq=False)
class Node:
    """One arena slot."""

    kind: NodeKind
    start: int
    end: int
    index: int = -1
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def closed(self) -> bool:
        return self.end != UNTERMINATED

    def __repr__(self) -> str:
        return f"Node({self.kind.value}, {self.start}, {self.end}, index={self.index})"


class Document:
    """Parsed document: raw text plus the node arena (slot 0 is the root)."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.nodes: List[Node] = []
        self.root = self.add_node(NodeKind.DOCUMENT, 0, len(text), None)

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------

    def add_node(self, kind: NodeKind, start: int, end: int, parent: Optional[Node]) -> Node:
        node = Node(kind=kind, start=start, end=end, index=len(self.nodes))
        if parent is not None:
            node.parent = parent.index
            parent.children.append(node.index)
        self.nodes.append(node)
        return node

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def parent_of(self, node: Node) -> Optional[Node]:
        if node.parent is None:
            return None
        return self.nodes[node.parent]

    def children_of(self, node: Node) -> List[Node]:
        return [self.nodes[i] for i in node.children]

    def first_child(self, node: Node, kind: NodeKind) -> Optional[Node]:
        for index in node.children:
            child = self.nodes[index]
            if child.kind is kind:
                return child
        return None

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def span_end(self, node: Node) -> int:
        """Effective end offset; unterminated nodes end where their nearest
        terminated ancestor ends."""
        current: Optional[Node] = node
        while current is not None:
            if current.closed:
                return current.end
            current = self.parent_of(current)
        return len(self.text)

    def text_of(self, node: Node) -> str:
        return self.text[node.start : self.span_end(node)]

    def logical_text_of(self, node: Node) -> str:
        return strip_continuations(self.text_of(node))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def properties(self) -> List["Property"]:
        return [
            Property(self, child)
            for child in self.children_of(self.root)
            if child.kind is NodeKind.PROPERTY
        ]

    @property
    def comments(self) -> List[str]:
        return [
            self.text_of(child)
            for child in self.children_of(self.root)
            if child.kind is NodeKind.COMMENT
        ]

    def get_property(self, key: str) -> Optional["Property"]:
        """Return the last property whose qualified name is ``key``."""
        found = None
        for prop in self.properties:
            if prop.property_name_with_profile == key:
                found = prop
        return found

    def to_mapping(self) -> Dict[str, str]:
        """Qualified name -> logical value; a later duplicate wins."""
        mapping: Dict[str, str] = {}
        for prop in self.properties:
            mapping[prop.property_name_with_profile] = prop.property_value or ""
        return mapping

    # ------------------------------------------------------------------
    # Offset lookup
    # ------------------------------------------------------------------

    def find_node_at(self, offset: int) -> Node:
        """Return the innermost node at ``offset``.

        Total over ``[0, len(text)]`` (out-of-range offsets are clamped).
        The document itself is returned only when it has no children;
        otherwise the lookup descends into the last top-level node that
        starts at or before ``offset``.
        """
        top = self.children_of(self.root)
        if not top:
            return self.root
        offset = max(0, min(offset, len(self.text)))
        candidate = top[0]
        for child in top:
            if child.start > offset:
                break
            candidate = child
        return self._find_in(candidate, offset)

    def _find_in(self, node: Node, offset: int) -> Node:
        if node.kind is NodeKind.PROPERTY:
            return self._find_in_property(node, offset)
        while node.kind in _CONTAINERS:
            for index in reversed(node.children):
                child = self.nodes[index]
                if child.start <= offset <= self.span_end(child):
                    node = child
                    break
            else:
                break
        return node

    def _find_in_property(self, node: Node, offset: int) -> Node:
        key = self.first_child(node, NodeKind.PROPERTY_KEY)
        if key is None:
            return node
        if not key.closed:
            return key
        assign = self.first_child(node, NodeKind.DELIMITER_ASSIGN)
        if assign is None:
            return key
        if offset == assign.start:
            return assign
        if offset > assign.start:
            value = self.first_child(node, NodeKind.PROPERTY_VALUE)
            return self._find_in(value, offset) if value is not None else assign
        return key

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_text(self) -> str:
        """Re-serialise every top-level node from its raw text, one per line.

        The last line ends with a newline only if the source had text after
        the last node; a node that runs to the end of input (an unterminated
        key, a dangling ``\\``) is left unterminated.
        """
        top = self.children_of(self.root)
        lines = []
        for child in top:
            if child.kind is NodeKind.PROPERTY:
                lines.append("".join(self.text_of(part) for part in self.children_of(child)))
            else:
                lines.append(self.text_of(child))
        pieces = []
        for line in lines:
            pieces.append(line)
            # A line ending in a CR continuation would absorb a bare LF.
            pieces.append("\r\n" if line.endswith("\r") else "\n")
        if top and self.span_end(top[-1]) >= len(self.text):
            pieces.pop()
        return "".join(pieces)

    def structure(self, node: Optional[Node] = None) -> Tuple:
        """Offset-free shape of the tree, used to compare two parses.

        Each node becomes ``(kind, logical text, closed, children)``.
        """
        node = node or self.root
        built: Dict[int, Tuple] = {}
        stack = [(node, False)]
        while stack:
            current, expanded = stack.pop()
            if not expanded:
                stack.append((current, True))
                stack.extend((self.nodes[index], False) for index in current.children)
                continue
            # Gaps between a property's parts are not preserved by to_text().
            if current.kind in (NodeKind.DOCUMENT, NodeKind.PROPERTY):
                text = ""
            else:
                text = self.logical_text_of(current)
            built[current.index] = (
                current.kind.value,
                text,
                current.closed,
                tuple(built.pop(index) for index in current.children),
            )
        return built[node.index]

    def walk(self, node: Optional[Node] = None) -> Iterator[Tuple[int, Node]]:
        """Depth-first ``(depth, node)`` pairs, root first."""
        stack = [(0, node or self.root)]
        while stack:
            depth, current = stack.pop()
            yield depth, current
            for index in reversed(current.children):
                stack.append((depth + 1, self.nodes[index]))


class Property:
    """View over a ``PROPERTY`` node."""

    def __init__(self, document: Document, node: Node) -> None:
        self.document = document
        self.node = node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Property):
            return NotImplemented
        return self.document is other.document and self.node.index == other.node.index

    def __hash__(self) -> int:
        return hash((id(self.document), self.node.index))

    def __repr__(self) -> str:
        return f"Property({self.property_name_with_profile!r}, {self.property_value!r})"

    @property
    def key(self) -> Node:
        key = self.document.first_child(self.node, NodeKind.PROPERTY_KEY)
        assert key is not None, "a property always owns a key"
        return key

    @property
    def delimiter_assign(self) -> Optional[Node]:
        return self.document.first_child(self.node, NodeKind.DELIMITER_ASSIGN)

    @property
    def value(self) -> Optional[Node]:
        return self.document.first_child(self.node, NodeKind.PROPERTY_VALUE)

    @property
    def property_key(self) -> str:
        """Raw key text, profile included."""
        return self.document.text_of(self.key)

    def _split(self) -> Tuple[Optional[str], str]:
        return split_profile(self.document.logical_text_of(self.key))

    @property
    def profile(self) -> Optional[str]:
        """``'%dev.key'`` -> ``'dev'``; ``'key'`` -> ``None``."""
        return self._split()[0]

    @property
    def property_name(self) -> str:
        """Name without profile, continuations removed (``''`` for ``'%dev.'``)."""
        return self._split()[1]

    @property
    def property_name_with_profile(self) -> str:
        profile, name = self._split()
        return qualified_name(profile, name)

    @property
    def property_value(self) -> Optional[str]:
        value = self.value
        if value is None:
            return None
        return self.document.logical_text_of(value)

    @property
    def expressions(self) -> List[Node]:
        value = self.value
        if value is None:
            return []
        return [
            child
            for child in self.document.children_of(value)
            if child.kind is NodeKind.EXPRESSION
        ]

    @property
    def is_property_value_expression(self) -> bool:
        return bool(self.expressions)

    def find_node_at(self, offset: int) -> Node:
        return self.document._find_in_property(self.node, offset)

    def resolved_value(
        self,
        graph: "PropertyGraph",
        project_info: Optional["ProjectInfo"] = None,
        token: Optional["CancellationToken"] = None,
    ) -> "Resolution":
        """Resolve this property's value against the other properties of its
        document (and ``project_info`` defaults)."""
        from .resolver import PropertyResolver

        resolver = PropertyResolver(
            self.document.to_mapping().get,
            graph,
            project_info=project_info,
        )
        return resolver.resolve_node(self.property_name_with_profile, self.document, self.value, token)
