"""
Utility functions shared across the IDL pipeline.
"""

import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")

_WHITESPACE = re.compile(r"\s+")

_OPENING = "([{"
_CLOSING = ")]}"


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens) to spaces."""
    return text.replace("_", " ").replace("-", " ")


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(text)


def to_snake_case(text: str) -> str:
    """Convert PascalCase, camelCase, or kebab-case text to snake_case.

    Examples:
        "Initialize" -> "initialize"
        "TestEventCpi" -> "test_event_cpi"
        "HTTPServer" -> "http_server"
        "my-program" -> "my_program"
    """
    if not text:
        return ""
    words = _split_into_words(_normalize_separators(text))
    return "_".join(word.lower() for word in words if word)


def snake_to_pascal_case(text: str) -> str:
    """Convert snake_case or kebab-case text to PascalCase.

    Examples:
        "my_program" -> "MyProgram"
        "counter-program" -> "CounterProgram"
    """
    if not text:
        return ""
    words = _split_into_words(_normalize_separators(text))
    return "".join(word.capitalize() for word in words if word)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split text on a separator, ignoring separators nested in brackets or strings.

    Empty segments (e.g. after a trailing comma) are dropped.

    Examples:
        "a, f(b, c), [d, e]" -> ["a", "f(b, c)", "[d, e]"]
    """
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _OPENING:
            depth += 1
        elif ch in _CLOSING:
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def strip_delimiters(text: str, opening: str = "(", closing: str = ")") -> str:
    """Remove one pair of surrounding delimiters, if present."""
    text = text.strip()
    if text.startswith(opening) and text.endswith(closing):
        return text[len(opening) : len(text) - len(closing)].strip()
    return text
