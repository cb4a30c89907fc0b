import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


def clean_text(text: str) -> str:
    """Normalize extracted document text before it is stored.

    Control characters are dropped (tabs and line breaks survive), line
    endings become ``\\n`` and runs of blank lines shrink to one.
    """
    text = _CONTROL_CHARS.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)
    return text.strip()
