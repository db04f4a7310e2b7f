"""Forgiving parser for properties-style configuration text.

The parser never rejects input: truncated or malformed text produces a
best-effort tree (unterminated nodes carry ``end == -1``) so editors can
keep navigating a document while it is being typed.

Grammar (one logical line per entry)::

    # comment            ! comment
    [%profile.]key = value
    [%profile.]key : value
    [%profile.]key   value
    key.\\
       continued = value ${other.key:fallback ${nested}}
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .keys import LINE_TERMINATORS, WHITESPACE, skip_line_terminator, skip_whitespace
from .nodes import UNTERMINATED, Document, Node, NodeKind

logger = logging.getLogger(__name__)

COMMENT_MARKERS = "#!"
ASSIGN_DELIMITERS = "=:"
EXPRESSION_OPEN = "${"
EXPRESSION_CLOSE = "}"
DEFAULT_SEPARATOR = ":"


def parse(text: str) -> Document:
    """Parse ``text`` into a :class:`Document`. Never raises."""
    return PropertiesParser(text).parse()


def parse_value(text: str) -> Document:
    """Parse standalone value text (e.g. a YAML scalar).

    The returned document's root owns a single ``PROPERTY_VALUE`` node that
    spans the whole text; line terminators are plain literal characters.
    """
    return PropertiesParser(text).parse_value()


class PropertiesParser:
    """Single-pass scanner building the node arena of one document."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.length = len(text)
        self.document = Document(text)

    def parse(self) -> Document:
        pos = 0
        while pos < self.length:
            pos = skip_whitespace(self.text, pos)
            if pos >= self.length:
                break
            ch = self.text[pos]
            if ch in LINE_TERMINATORS:
                pos = skip_line_terminator(self.text, pos)
            elif ch in COMMENT_MARKERS:
                pos = self._parse_comment(pos)
            else:
                pos = self._parse_property(pos)
        logger.debug(
            "Parsed %d properties from %d characters",
            len(self.document.properties),
            self.length,
        )
        return self.document

    def parse_value(self) -> Document:
        value = self.document.add_node(NodeKind.PROPERTY_VALUE, 0, self.length, self.document.root)
        self._scan_segments(value, 0, self.length)
        return self.document

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def _line_end(self, pos: int) -> int:
        while pos < self.length and self.text[pos] not in LINE_TERMINATORS:
            pos += 1
        return pos

    def _parse_comment(self, pos: int) -> int:
        end = self._line_end(pos)
        self.document.add_node(NodeKind.COMMENT, pos, end, self.document.root)
        return end

    def _skip_blank(self, pos: int) -> int:
        """Skip whitespace and backslash continuations."""
        while pos < self.length:
            ch = self.text[pos]
            if ch in WHITESPACE:
                pos += 1
            elif (
                ch == "\\"
                and pos + 1 < self.length
                and self.text[pos + 1] in LINE_TERMINATORS
            ):
                pos = skip_line_terminator(self.text, pos + 1)
            else:
                break
        return pos

    def _parse_property(self, pos: int) -> int:
        doc = self.document
        prop = doc.add_node(NodeKind.PROPERTY, pos, pos, doc.root)
        key = doc.add_node(NodeKind.PROPERTY_KEY, pos, pos, prop)

        i = pos
        unterminated = False
        while i < self.length:
            ch = self.text[i]
            if ch == "\\":
                if i + 1 >= self.length:
                    i = self.length
                    unterminated = True
                    break
                if self.text[i + 1] in LINE_TERMINATORS:
                    i = skip_whitespace(self.text, skip_line_terminator(self.text, i + 1))
                    if i >= self.length:
                        unterminated = True
                    continue
                i += 2
                continue
            if ch in ASSIGN_DELIMITERS or ch in WHITESPACE or ch in LINE_TERMINATORS:
                break
            i += 1

        if unterminated:
            key.end = UNTERMINATED
            prop.end = self.length
            return self.length
        key.end = i
        prop.end = i

        j = self._skip_blank(i)
        if j >= self.length or self.text[j] in LINE_TERMINATORS:
            return j
        if self.text[j] in ASSIGN_DELIMITERS:
            assign = doc.add_node(NodeKind.DELIMITER_ASSIGN, j, j + 1, prop)
            start = self._skip_blank(j + 1)
        else:
            # Bare whitespace separates key and value.
            assign = doc.add_node(NodeKind.DELIMITER_ASSIGN, i, j, prop)
            start = j
        prop.end = assign.end

        if start >= self.length or self.text[start] in LINE_TERMINATORS:
            return start

        end = self._value_end(start)
        value = doc.add_node(NodeKind.PROPERTY_VALUE, start, end, prop)
        self._scan_segments(value, start, end)
        prop.end = end
        return end

    def _value_end(self, pos: int) -> int:
        while pos < self.length:
            ch = self.text[pos]
            if ch == "\\":
                if pos + 1 >= self.length:
                    return self.length
                if self.text[pos + 1] in LINE_TERMINATORS:
                    pos = skip_whitespace(self.text, skip_line_terminator(self.text, pos + 1))
                    continue
                pos += 2
                continue
            if ch in LINE_TERMINATORS:
                break
            pos += 1
        return pos

    # ------------------------------------------------------------------
    # Value segments and expressions
    # ------------------------------------------------------------------

    def _skip_escape(self, pos: int, end: int) -> int:
        """``pos`` is on a backslash; return the offset after the escape pair."""
        if self.text.startswith("\r\n", pos + 1):
            return min(pos + 3, end)
        return min(pos + 2, end)

    def _scan_segments(self, parent: Node, start: int, end: int) -> None:
        """Split ``[start, end)`` into literal runs and expressions under ``parent``.

        Open expressions are kept on an explicit stack, innermost last, so
        nesting depth is bounded by the input and not by the interpreter.
        """
        doc = self.document
        text = self.text
        stack: List[_OpenExpression] = []
        i = start
        literal_start = start
        while i < end:
            ch = text[i]
            if ch == "\\":
                i = self._skip_escape(i, end)
                continue
            opens = text.startswith(EXPRESSION_OPEN, i) and i + 1 < end
            top = stack[-1] if stack else None

            if top is not None and top.default is None:
                # Reference part: nested braces are counted, not parsed.
                if opens:
                    top.depth += 1
                    i += len(EXPRESSION_OPEN)
                    continue
                if ch == EXPRESSION_CLOSE and top.depth == 0:
                    top.reference.end = i
                    top.expression.end = i + 1
                    stack.pop()
                    i += 1
                    literal_start = i
                    continue
                if ch == EXPRESSION_CLOSE:
                    top.depth -= 1
                elif ch == DEFAULT_SEPARATOR and top.depth == 0:
                    top.reference.end = i
                    top.default = doc.add_node(
                        NodeKind.EXPRESSION_DEFAULT, i + 1, UNTERMINATED, top.expression
                    )
                    literal_start = i + 1
                i += 1
                continue

            container = top.default if top is not None else parent
            if opens:
                if i > literal_start:
                    doc.add_node(NodeKind.VALUE_LITERAL, literal_start, i, container)
                expression = doc.add_node(NodeKind.EXPRESSION, i, UNTERMINATED, container)
                reference = doc.add_node(
                    NodeKind.EXPRESSION_REFERENCE,
                    i + len(EXPRESSION_OPEN),
                    UNTERMINATED,
                    expression,
                )
                stack.append(_OpenExpression(expression, reference))
                i += len(EXPRESSION_OPEN)
                literal_start = i
                continue
            if ch == EXPRESSION_CLOSE and top is not None:
                if i > literal_start:
                    doc.add_node(NodeKind.VALUE_LITERAL, literal_start, i, container)
                container.end = i
                top.expression.end = i + 1
                stack.pop()
                i += 1
                literal_start = i
                continue
            i += 1

        # Whatever is still open was cut short by the end of the range.
        while stack:
            top = stack.pop()
            if top.default is None:
                top.reference.end = end
            else:
                if literal_start < end:
                    doc.add_node(NodeKind.VALUE_LITERAL, literal_start, end, top.default)
                top.default.end = end
            literal_start = end
        if literal_start < end:
            doc.add_node(NodeKind.VALUE_LITERAL, literal_start, end, parent)


class _OpenExpression:
    """An expression whose closing brace has not been seen yet."""

    __slots__ = ("expression", "reference", "default", "depth")

    def __init__(self, expression: Node, reference: Node) -> None:
        self.expression = expression
        self.reference = reference
        self.default: Optional[Node] = None
        self.depth = 0
