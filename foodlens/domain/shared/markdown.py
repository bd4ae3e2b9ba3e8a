"""
Markdown stripping for model-generated text.

Downstream consumers render raw text, so emphasis, strikethrough and
code-span markers are removed while the enclosed words are kept verbatim.
This is a textual heuristic, not a markdown parser.
"""

import re

# Order matters: double markers before single ones.
_PAIRED_MARKERS = [
    re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*"),
    re.compile(r"__(?=\S)(.+?)(?<=\S)__"),
    re.compile(r"~~(?=\S)(.+?)(?<=\S)~~"),
    re.compile(r"`([^`\n]+)`"),
    re.compile(r"\*(?=[^\s*])(.+?)(?<=[^\s*])\*"),
    re.compile(r"(?<!\w)_(?=[^\s_])(.+?)(?<=[^\s_])_(?!\w)"),
]

# Unpaired leftovers that never occur in plain prose.
_ORPHAN_MARKERS = re.compile(r"\*\*|__|~~|`")

_REPEATED_SPACES = re.compile(r" {2,}")


def strip_markdown(text: str) -> str:
    """Remove markdown emphasis markers from text.

    Args:
        text: Free text possibly containing **bold**, _italic_, `code`...

    Returns:
        Text without markers, repeated spaces collapsed, trimmed

    Example:
        >>> strip_markdown("**High** sugar, see `WHO` _guidance_")
        'High sugar, see WHO guidance'
        >>> strip_markdown("snake_case stays, 2 * 3 stays")
        'snake_case stays, 2 * 3 stays'
    """
    cleaned = text
    for pattern in _PAIRED_MARKERS:
        cleaned = pattern.sub(r"\1", cleaned)
    cleaned = _ORPHAN_MARKERS.sub("", cleaned)
    cleaned = _REPEATED_SPACES.sub(" ", cleaned)
    return cleaned.strip()
