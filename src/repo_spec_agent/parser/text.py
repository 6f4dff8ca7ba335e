"""Text-window helpers shared by the pattern-based parsers.

The pattern parsers never build a scope tree. They look at a bounded slice
of text around a route declaration (or, when it can be found, the exact
handler body) and pull hints out of it with the functions below.
"""

import re

from .fields import split_names

_QUOTES = "'\"`"

AUTH_HINT = re.compile(
    r"\b(?:auth|authMiddleware|authenticate\w*|authorize\w*|isAuthenticated|requireAuth\w*|verifyToken|checkAuth|"
    r"protect|passport\.authenticate|jwt\w*|ensureLoggedIn|requireUser)\b",
    re.IGNORECASE,
)
# Route paths and other literals are not middleware.
_STRING_LITERAL = re.compile(r"(['\"`])(?:\\.|(?!\1)[^\\\n])*\1")
_STATUS_CALL = re.compile(r"\.(?:status|sendStatus|code)\s*\(\s*(\d{3})\s*\)")
DOC_MARKER = re.compile(r"@(?:swagger|openapi)\b")


def window(content: str, index: int, before: int, after: int) -> str:
    return content[max(0, index - before): index + after]


def skip_string(content: str, index: int) -> int:
    """Index just past the string literal that starts at ``index``."""
    quote = content[index]
    i = index + 1
    while i < len(content):
        char = content[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        i += 1
    return len(content)


def matching_close(content: str, open_index: int, open_char: str = "(", close_char: str = ")") -> int:
    """Index of the bracket closing the one at ``open_index``, or -1.

    String literals are skipped, so brackets inside them do not count.
    """
    depth = 0
    i = open_index
    while i < len(content):
        char = content[i]
        if char in _QUOTES:
            i = skip_string(content, i)
            continue
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def block_end(content: str, start: int, fallback: int = 500) -> int:
    """End of the ``{...}`` block opening at or after ``start``.

    Counts brace depth. When no balanced block is found the end is
    ``start + fallback``.
    """
    open_index = content.find("{", start)
    if open_index == -1:
        return min(len(content), start + fallback)
    close = matching_close(content, open_index, "{", "}")
    if close == -1:
        return min(len(content), start + fallback)
    return close + 1


def quoted(value: str) -> str | None:
    """The text of a single string literal, or None."""
    value = value.strip()
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        return value[1:-1]
    return None


def destructured_from(text: str, source: str) -> list[str]:
    """Names destructured from ``source``: ``const { a, b } = req.body``."""
    names = []
    pattern = re.compile(r"(?:const|let|var)\s*\{([^}]*)\}\s*=\s*(?:await\s+)?" + source + r"(?![\w$])")
    for match in pattern.finditer(text):
        for name in split_names(match.group(1)):
            if name not in names:
                names.append(name)
    return names


def dotted_from(text: str, source: str) -> list[str]:
    """Names read with member access: ``req.body.email`` / ``req.body['email']``."""
    names = []
    pattern = re.compile(source + r"""(?:\.([A-Za-z_$][\w$]*)|\[\s*['"]([\w$-]+)['"]\s*\])""")
    for match in pattern.finditer(text):
        name = match.group(1) or match.group(2)
        if name not in names:
            names.append(name)
    return names


def accessed_fields(text: str, source: str) -> list[str]:
    """Every field of ``source`` that the text reads, destructured first."""
    names = destructured_from(text, source)
    for name in dotted_from(text, source):
        if name not in names:
            names.append(name)
    return names


def status_codes(text: str) -> list[str]:
    codes = []
    for match in _STATUS_CALL.finditer(text):
        if match.group(1) not in codes:
            codes.append(match.group(1))
    return codes


def mentions_auth(text: str) -> bool:
    """Whether auth middleware is named in ``text``, outside string literals."""
    return bool(AUTH_HINT.search(_STRING_LITERAL.sub("''", text)))


def docblock_before(content: str, index: int) -> str | None:
    """First prose line of the ``/** ... */`` block ending right before ``index``.

    Attribute lines (``#[...]``) between the block and ``index`` are allowed.
    Tag lines (``@param``, ``@Route``) are not prose.
    """
    head = content[:index].rstrip()
    while head.endswith("]"):
        start = head.rfind("#[")
        if start == -1:
            break
        head = head[:start].rstrip()
    if not head.endswith("*/"):
        return None
    start = head.rfind("/**")
    if start == -1 or DOC_MARKER.search(head, start):
        return None
    for line in head[start + 3: -2].split("\n"):
        line = line.strip().lstrip("*").strip()
        if line and not line.startswith("@"):
            return line
    return None
