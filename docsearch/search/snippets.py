import html
import re
from typing import List, Optional, Tuple

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"
ELLIPSIS = "..."
DEFAULT_PREVIEW_LEN = 500
MIN_HIGHLIGHT_LEN = 3


def _first_match_pos(text: str, query: str) -> Optional[int]:
    positions = []
    for token in query.split():
        match = re.search(re.escape(token), text, re.IGNORECASE)
        if match:
            positions.append(match.start())
    return min(positions) if positions else None


def extract_snippet(text: str, query: str, max_length: int = DEFAULT_PREVIEW_LEN) -> str:
    """Cut a preview window around the earliest occurrence of any query token.

    The window starts a third of ``max_length`` before the match. Ellipses
    mark a cut on either side. Without any match the head of the text is
    returned as is.
    """
    if not text:
        return ""
    first_match = _first_match_pos(text, query)
    if first_match is None:
        return text[:max_length]

    context_start = max(0, first_match - max_length // 3)
    context_end = context_start + max_length
    snippet = text[context_start:context_end]
    if context_start > 0:
        snippet = ELLIPSIS + snippet
    if context_end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def _split_marked(
    segments: List[Tuple[str, bool]], token: str
) -> List[Tuple[str, bool]]:
    pattern = re.compile(re.escape(token), re.IGNORECASE)
    result: List[Tuple[str, bool]] = []
    for segment, marked in segments:
        if marked:
            result.append((segment, True))
            continue
        pos = 0
        for match in pattern.finditer(segment):
            if match.start() > pos:
                result.append((segment[pos : match.start()], False))
            result.append((match.group(0), True))
            pos = match.end()
        if pos < len(segment):
            result.append((segment[pos:], False))
    return result


def highlight(text: str, query: str) -> str:
    """Wrap every case-insensitive occurrence of each query token in <mark>.

    Tokens shorter than three characters are skipped. Text already claimed by
    an earlier token is left alone, so markers never nest. The document text
    itself is HTML-escaped, so tags it contains render as literal text.
    """
    segments = [(text, False)]
    for token in query.split():
        if len(token) >= MIN_HIGHLIGHT_LEN:
            segments = _split_marked(segments, token)
    rendered = []
    for segment, marked in segments:
        segment = html.escape(segment, quote=False)
        rendered.append(f"{MARK_OPEN}{segment}{MARK_CLOSE}" if marked else segment)
    return "".join(rendered)
