"""
Doc comment and attribute extraction.

Works on the metadata attached to an item, field, or variant: the raw text of
the attribute items and comments that precede it in the source. Nothing here
raises; malformed input yields None or is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from ...utils import normalize_whitespace, split_top_level, strip_delimiters

_ATTRIBUTE = re.compile(r"^#\s*\[\s*([\w:]+)\s*(.*)\]$", re.DOTALL)
_STRING_LITERAL = re.compile(r'"((?:[^"\\]|\\.)*)"', re.DOTALL)
_BYTE_STRING = re.compile(r'^b"((?:[^"\\]|\\.)*)"$', re.DOTALL)
_RAW_BYTE_STRING = re.compile(r'^br(#*)"(.*)"\1$', re.DOTALL)
_INT_SUFFIX = re.compile(r"(?:u8|u16|u32|u64|u128|usize|i8|i16|i32|i64|i128|isize)$")

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "0": "\0",
    "'": "'",
    '"': '"',
}


@dataclass
class AttributeMeta:
    """A parsed outer attribute such as #[account(discriminator = Foo)]."""

    path: str = ""  # Full path as written, e.g. "pina::account"
    arguments: str = ""  # Text inside the parentheses
    value: str | None = None  # Right-hand side of #[name = value]
    args: dict[str, str] = field(default_factory=dict)  # key = value arguments
    flags: list[str] = field(default_factory=list)  # Bare arguments, e.g. final

    @property
    def name(self) -> str:
        """Last path segment, e.g. "account" for #[pina::account]."""
        return self.path.rsplit("::", 1)[-1]

    def has_flag(self, flag: str) -> bool:
        return any(item.rsplit("::", 1)[-1] == flag for item in self.flags)


def parse_attribute(text: str) -> AttributeMeta | None:
    """Parse the text of an outer attribute item. Returns None for anything else."""
    match = _ATTRIBUTE.match(text.strip())
    if not match:
        return None

    meta = AttributeMeta(path=match.group(1))
    rest = match.group(2).strip()
    if rest.startswith("("):
        meta.arguments = normalize_whitespace(strip_delimiters(rest))
        for part in split_top_level(meta.arguments):
            key, sep, value = part.partition("=")
            if sep and not value.startswith("="):
                meta.args[key.strip()] = value.strip()
            else:
                meta.flags.append(part)
    elif rest.startswith("="):
        meta.value = rest[1:].strip()
    return meta


def extract_attributes(metadata: Iterable[str]) -> list[AttributeMeta]:
    """Return every outer attribute in the metadata, in order."""
    attributes = []
    for text in metadata:
        meta = parse_attribute(text)
        if meta is not None:
            attributes.append(meta)
    return attributes


def find_attribute(metadata: Iterable[str], name: str) -> AttributeMeta | None:
    """Return the first attribute whose last path segment is `name`."""
    for meta in extract_attributes(metadata):
        if meta.name == name:
            return meta
    return None


def has_derive(metadata: Iterable[str], name: str) -> bool:
    """Check whether any #[derive(...)] in the metadata lists `name`."""
    return any(meta.name == "derive" and meta.has_flag(name) for meta in extract_attributes(metadata))


def extract_docs(metadata: Iterable[str]) -> list[str]:
    """
    Extract documentation lines from item metadata.

    Handles `///` line comments, `/** */` block comments and `#[doc = "..."]`
    attributes. Each line is trimmed; order is preserved. Plain comments,
    inner doc comments and other attributes are ignored.
    """
    docs: list[str] = []
    for text in metadata:
        text = text.strip()
        if text.startswith("///") and not text.startswith("////"):
            docs.append(text[3:].strip())
        elif text.startswith("/**") and not text.startswith("/***") and text != "/**/":
            docs.extend(_block_doc_lines(text[3:-2]))
        elif text.startswith("#"):
            meta = parse_attribute(text)
            if meta is not None and meta.name == "doc" and meta.value is not None:
                literal = decode_string_literal(meta.value)
                if literal is not None:
                    docs.extend(line.strip() for line in literal.splitlines() or [""])
    return docs


def _block_doc_lines(body: str) -> list[str]:
    lines = [line.strip() for line in body.splitlines()]
    lines = [line[1:].strip() if line.startswith("*") else line for line in lines]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return lines


def extract_program_id(arguments: str) -> str | None:
    """Return the address literal from the arguments of declare_id!, quotes removed."""
    match = _STRING_LITERAL.search(arguments)
    if not match:
        return None
    address = match.group(1).strip()
    return address or None


def parse_int_literal(text: str) -> int | None:
    """
    Parse a Rust integer literal.

    Accepts `_` separators, 0x/0o/0b prefixes and type suffixes such as `7u8`.
    Returns None for anything that is not a non-negative integer literal.
    """
    literal = text.strip().replace("_", "").lower()
    if not literal or literal.startswith("-"):
        return None

    base = 10
    for prefix, prefix_base in (("0x", 16), ("0o", 8), ("0b", 2)):
        if literal.startswith(prefix):
            literal = literal[len(prefix) :]
            base = prefix_base
            break

    # Hex digits overlap with no suffix except via the letter, so only strip
    # suffixes that begin with u or i.
    literal = _INT_SUFFIX.sub("", literal)
    try:
        return int(literal, base)
    except ValueError:
        return None


def resolve_variant_values(explicit: Iterable[int | None]) -> list[int]:
    """Assign each variant its explicit value, or the previous value + 1 starting at 0."""
    values = []
    next_value = 0
    for value in explicit:
        if value is None:
            value = next_value
        values.append(value)
        next_value = value + 1
    return values


def decode_string_literal(text: str) -> str | None:
    """Decode a Rust string literal ("..." or r#"..."#)."""
    text = text.strip()
    raw = re.match(r'^r(#*)"(.*)"\1$', text, re.DOTALL)
    if raw:
        return raw.group(2)
    match = re.match(r'^"((?:[^"\\]|\\.)*)"$', text, re.DOTALL)
    if not match:
        return None
    decoded = _unescape(match.group(1))
    return decoded.decode("utf-8", errors="replace") if decoded is not None else None


def decode_byte_string(text: str) -> bytes | None:
    """
    Decode a Rust byte string literal.

    Accepts b"...", br"..." / br#"..."#, and a leading reference (&b"...").
    Returns None if the text is not a byte string literal.
    """
    text = text.strip().lstrip("&").strip()
    raw = _RAW_BYTE_STRING.match(text)
    if raw:
        return raw.group(2).encode("utf-8")
    match = _BYTE_STRING.match(text)
    if not match:
        return None
    return _unescape(match.group(1))


def _unescape(body: str) -> bytes | None:
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.extend(ch.encode("utf-8"))
            i += 1
            continue
        if i + 1 >= len(body):
            return None
        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.extend(_SIMPLE_ESCAPES[esc].encode("utf-8"))
            i += 2
        elif esc == "x":
            try:
                out.append(int(body[i + 2 : i + 4], 16))
            except ValueError:
                return None
            i += 4
        elif esc == "\n":
            # Line continuation: skip the newline and leading whitespace.
            i += 2
            while i < len(body) and body[i] in " \t\r\n":
                i += 1
        else:
            return None
    return bytes(out)
