"""
Restricted markdown renderer for assistant replies.

Escapes raw text and expands a small, fixed markdown subset into HTML that is safe
to inject into the dashboard. Supported constructs, in order of precedence:

1. Fenced code blocks (triple backticks) -> <pre><code>...</code></pre>
2. Inline code spans (single backticks) -> <code>...</code>
3. Lines starting with "-" or "*" plus whitespace -> one <ul> per run of items

Everything else passes through as literal (escaped) text. Rendering is a sequence of
explicit passes over text segments rather than a regex cascade, so code content is
never re-interpreted as list syntax.
"""

from dataclasses import dataclass

__all__ = ["escape_html", "render_markdown", "render_message"]

FENCE = "```"
BACKTICK = "`"
LIST_MARKERS = ("-", "*")
INLINE_WHITESPACE = (" ", "\t")

_ESCAPES = {"&": "&amp;", "<": "&lt;", ">": "&gt;"}


@dataclass(frozen=True)
class _Segment:
    """A slice of the input: either fenced code or plain text."""

    text: str
    is_code: bool
    at_line_start: bool = True


def escape_html(text: object) -> str:
    """
    Replace &, < and > with their HTML entities.

    No other characters are altered. Must run before render_markdown() so that
    markup present in the raw text can never be reinterpreted as formatting.

    Args:
        text: Raw text (non-strings are converted with str())

    Returns:
        Escaped text
    """
    return "".join(_ESCAPES.get(char, char) for char in str(text))


def _split_fences(text: str) -> list[_Segment]:
    """Split text into plain and fenced-code segments (pass 1)."""
    segments: list[_Segment] = []
    position = 0
    at_line_start = True

    while position < len(text):
        open_at = text.find(FENCE, position)
        if open_at == -1:
            break
        close_at = text.find(FENCE, open_at + len(FENCE))
        if close_at == -1:
            # Unterminated fence stays literal
            break

        if open_at > position:
            segments.append(_Segment(text[position:open_at], is_code=False, at_line_start=at_line_start))
        segments.append(_Segment(text[open_at + len(FENCE) : close_at], is_code=True))
        position = close_at + len(FENCE)
        at_line_start = False

    if position < len(text):
        segments.append(_Segment(text[position:], is_code=False, at_line_start=at_line_start))

    return segments


def _render_inline_code(text: str) -> str:
    """Wrap single-backtick spans in <code> tags (pass 2)."""
    parts: list[str] = []
    position = 0

    while True:
        open_at = text.find(BACKTICK, position)
        if open_at == -1:
            break
        close_at = text.find(BACKTICK, open_at + 1)
        if close_at == -1:
            break
        if close_at == open_at + 1:
            # Empty span: keep the first backtick, retry from the second
            parts.append(text[position : open_at + 1])
            position = open_at + 1
            continue

        parts.append(text[position:open_at])
        parts.append(f"<code>{text[open_at + 1 : close_at]}</code>")
        position = close_at + 1

    parts.append(text[position:])
    return "".join(parts)


def _list_item(line: str) -> str | None:
    """Return the item text if line is a list line, else None."""
    stripped = line.lstrip()
    if len(stripped) < 2 or stripped[0] not in LIST_MARKERS or stripped[1] not in INLINE_WHITESPACE:
        return None
    return stripped[1:].lstrip(" \t")


def _render_lists(text: str, at_line_start: bool = True) -> str:
    """
    Turn runs of list lines into a single <ul> container (pass 3).

    Blank lines between two list lines do not break the run.
    """
    lines = text.split("\n")
    rendered: list[str] = []
    index = 0

    while index < len(lines):
        item = _list_item(lines[index])
        if item is None or (index == 0 and not at_line_start):
            rendered.append(lines[index])
            index += 1
            continue

        items = [item]
        index += 1
        while index < len(lines):
            lookahead = index
            while lookahead < len(lines) and not lines[lookahead].strip():
                lookahead += 1
            next_item = _list_item(lines[lookahead]) if lookahead < len(lines) else None
            if next_item is None:
                break
            items.append(next_item)
            index = lookahead + 1

        rendered.append("<ul>" + "".join(f"<li>{entry}</li>" for entry in items) + "</ul>")

    return "\n".join(rendered)


def render_markdown(text: str) -> str:
    """
    Expand the supported markdown subset into HTML.

    Operates on already-escaped text (see escape_html). Code block contents are
    emitted untouched; inline code and list passes only see plain segments.

    Args:
        text: Escaped text

    Returns:
        HTML string
    """
    html_parts: list[str] = []
    for segment in _split_fences(text):
        if segment.is_code:
            html_parts.append(f"<pre><code>{segment.text}</code></pre>")
        else:
            html_parts.append(_render_lists(_render_inline_code(segment.text), segment.at_line_start))
    return "".join(html_parts)


def render_message(text: object) -> str:
    """Escape then render: the only safe way to display untrusted message text."""
    return render_markdown(escape_html(text))
