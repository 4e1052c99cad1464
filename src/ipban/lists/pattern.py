"""Pattern compiler - joins multi-line pattern text into one regex.

Long patterns are easier to author across several lines, so each line of
the configured text is a fragment of a single logical pattern:

    ^192\\.168\\.
    (1|2)\\.

compiles to ``^192\\.168\\.(1|2)\\.``. Lines are trimmed and joined with no
separator; to match a literal newline use an escape such as ``\\n``.
"""

import re

from .errors import PatternError

# Replacement for "*" in address patterns: one or more hex digits, so a
# single wildcard covers an IPv4 octet or an IPv6 group.
HEX_WILDCARD = "[0-9A-Fa-f]+?"

# Case-insensitive, never locale-dependent (no re.LOCALE).
PATTERN_FLAGS = re.IGNORECASE

# Flexible whitespace wrapped around expression patterns
_LAZY_WS = r"\s*?"


def join_pattern_lines(text: str) -> str:
    """Trim each line of text and concatenate the non-empty ones."""
    return "".join(line.strip() for line in text.split("\n") if line.strip())


def anchor_expression(text: str) -> str:
    """Surround an expression with lazy whitespace.

    A leading caret stays the first character:
    ``^abc`` becomes ``^\\s*?abc\\s*?`` and ``abc`` becomes ``\\s*?abc\\s*?``.
    """
    text = text.strip()
    if not text:
        return text
    if text[0] == "^":
        return "^" + _LAZY_WS + text[1:] + _LAZY_WS
    return _LAZY_WS + text + _LAZY_WS


def _compile(source: str) -> re.Pattern:
    try:
        return re.compile(source, PATTERN_FLAGS)
    except re.error as e:
        raise PatternError(source, str(e)) from e


def compile_pattern(text: str | None, wildcard: bool = False) -> re.Pattern | None:
    """Compile multi-line pattern text.

    Args:
        text: Raw pattern text, one fragment per line.
        wildcard: Replace every ``*`` with a hex-digit class first
            (used for allow/deny address patterns).

    Returns:
        The compiled pattern, or None when the text holds no fragments.

    Raises:
        PatternError: The joined text is not a valid regular expression.
    """
    if not text or not text.strip():
        return None
    if wildcard:
        text = text.replace("*", HEX_WILDCARD)
    source = join_pattern_lines(text)
    if not source:
        return None
    return _compile(source)


def compile_expression(text: str | None) -> re.Pattern | None:
    """Compile an expression: join its lines, then anchor it."""
    if not text or not text.strip():
        return None
    source = anchor_expression(join_pattern_lines(text))
    if not source:
        return None
    return _compile(source)
