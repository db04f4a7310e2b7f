"""Property key helpers: profiles, continuations and qualified names."""

from typing import Iterator, Optional, Tuple

PROFILE_PREFIX = "%"

# Characters the properties grammar treats as blank inside a line.
WHITESPACE = " \t\f"
LINE_TERMINATORS = "\r\n"


def skip_line_terminator(text: str, pos: int) -> int:
    """Return the offset just after the line terminator starting at ``pos``.

    ``\\r\\n`` counts as a single terminator. If ``pos`` is not on a
    terminator, ``pos`` is returned unchanged.
    """
    if pos < len(text) and text[pos] == "\r":
        pos += 1
        if pos < len(text) and text[pos] == "\n":
            pos += 1
        return pos
    if pos < len(text) and text[pos] == "\n":
        return pos + 1
    return pos


def skip_whitespace(text: str, pos: int, end: Optional[int] = None) -> int:
    limit = len(text) if end is None else end
    while pos < limit and text[pos] in WHITESPACE:
        pos += 1
    return pos


def strip_continuations(raw: str) -> str:
    """Return the logical, one-line equivalent of ``raw``.

    Removes every unescaped backslash + line terminator together with the
    leading whitespace of the continued line. Escape pairs such as ``\\=``
    or ``\\\\`` are kept verbatim. A dangling backslash at the very end of
    ``raw`` is dropped.

    Examples:
        >>> strip_continuations("key1.\\\\\\n  key2")
        'key1.key2'
    """
    if "\\" not in raw:
        return raw
    out = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= n:
            break
        nxt = raw[i + 1]
        if nxt in LINE_TERMINATORS:
            i = skip_whitespace(raw, skip_line_terminator(raw, i + 1))
            continue
        out.append(ch)
        out.append(nxt)
        i += 2
    return "".join(out)


def split_profile(key: str) -> Tuple[Optional[str], str]:
    """Split a logical key into ``(profile, property_name)``.

    - ``'%dev.key'`` -> ``('dev', 'key')``
    - ``'%dev.'`` -> ``('dev', '')``
    - ``'%dev'`` -> ``('dev', '')``
    - ``'key'`` -> ``(None, 'key')``
    """
    if not key.startswith(PROFILE_PREFIX):
        return None, key
    dot = key.find(".")
    if dot == -1:
        return key[1:], ""
    return key[1:dot], key[dot + 1 :]


def qualified_name(profile: Optional[str], property_name: str) -> str:
    """Compose a qualified key; ``profile=None`` returns the bare name."""
    if profile is None:
        return property_name
    return f"{PROFILE_PREFIX}{profile}.{property_name}"


def profile_of(key: str) -> Optional[str]:
    return split_profile(key)[0]


def base_name(key: str) -> str:
    return split_profile(key)[1]


def reference_candidates(reference: str, profile: Optional[str]) -> Iterator[str]:
    """Yield the keys to try, in order, when a property with ``profile``
    references ``reference``: the profiled key first, then the bare key."""
    if profile is not None and not reference.startswith(PROFILE_PREFIX):
        yield qualified_name(profile, reference)
    yield reference
