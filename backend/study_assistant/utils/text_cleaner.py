"""Text cleaning and normalization utilities."""
import re

# Control characters other than whitespace (\t, \n, \x0b, \x0c, \r)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_page_text(text: str) -> str:
    """
    Normalize raw page text before chunking.

    Line structure is preserved so that blank-line paragraph boundaries
    survive; only stray control characters and carriage returns are removed.

    Args:
        text: Raw page text

    Returns:
        Text with control characters removed and line endings normalized
    """
    text = _CONTROL_CHARS.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE_RUN.sub(" ", text).strip()
