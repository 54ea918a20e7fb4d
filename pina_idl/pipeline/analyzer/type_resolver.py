"""
Field type classification.

Maps the type token of a struct field to a TypeIR following fixed rules.
Anything outside those rules is an UnsupportedType error.
"""

from __future__ import annotations

import re

from ...errors import UnsupportedType
from ..scanner.docs import parse_int_literal
from ..scanner.nodes import ConstantDecl, FieldDecl
from .ir_nodes import FieldIR, TypeIR, TypeKind

# name -> (width, signed)
INTEGER_TYPES: dict[str, tuple[int, bool]] = {
    "u8": (1, False),
    "i8": (1, True),
    "u16": (2, False),
    "i16": (2, True),
    "u32": (4, False),
    "i32": (4, True),
    "u64": (8, False),
    "i64": (8, True),
    "PodU16": (2, False),
    "PodI16": (2, True),
    "PodU32": (4, False),
    "PodI32": (4, True),
    "PodU64": (8, False),
    "PodI64": (8, True),
}

BOOLEAN_TYPES = {"bool", "PodBool"}

ADDRESS_TYPES = {"Address", "Pubkey"}

ADDRESS_WIDTH = 32

_ARRAY = re.compile(r"^\[\s*(.+?)\s*;\s*(.+?)\s*\]$")
_PATH = re.compile(r"^(?:\w+::)*(\w+)$")


def integer_type(width: int, signed: bool = False) -> TypeIR:
    return TypeIR(kind=TypeKind.INTEGER, width=width, signed=signed)


def address_type() -> TypeIR:
    return TypeIR(kind=TypeKind.ADDRESS, width=ADDRESS_WIDTH)


class TypeResolver:
    """Classifies field type tokens, resolving struct references and constant array sizes."""

    def __init__(
        self,
        structs: dict[str, list[FieldDecl]],
        constants: dict[str, ConstantDecl],
        locations: dict[str, str] | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            structs: Fields of every scanned plain struct, by struct name
            constants: Scanned constants, by name
            locations: `path:line` of every plain struct, by struct name
        """
        self.structs = structs
        self.constants = constants
        self.locations = locations or {}
        self._resolved: dict[str, TypeIR] = {}
        self._in_progress: list[str] = []

    def resolve_fields(self, fields: list[FieldDecl], context: str, location: str | None = None) -> tuple[FieldIR, ...]:
        """Classify every field of a declaration named `context`."""
        return tuple(
            FieldIR(
                name=f.name,
                type_token=f.type_token,
                type=self.resolve(f.type_token, context, location),
                docs=tuple(f.docs),
            )
            for f in fields
        )

    def resolve(self, token: str, context: str, location: str | None = None) -> TypeIR:
        """
        Classify one type token.

        Raises:
            UnsupportedType: If the token matches no rule
        """
        array = _ARRAY.match(token)
        if array:
            return self._resolve_array(token, array.group(1), array.group(2), context, location)

        path = _PATH.match(token.strip())
        if not path:
            raise UnsupportedType(context, token, location)
        name = path.group(1)

        if name in INTEGER_TYPES:
            width, signed = INTEGER_TYPES[name]
            return integer_type(width, signed)
        if name in BOOLEAN_TYPES:
            return TypeIR(kind=TypeKind.BOOLEAN, width=1)
        if name in ADDRESS_TYPES:
            return address_type()
        if name in self.structs:
            return self._resolve_struct(name, token, context, location)
        raise UnsupportedType(context, token, location)

    def _resolve_array(self, token: str, element: str, size: str, context: str, location: str | None) -> TypeIR:
        element_path = _PATH.match(element)
        if not element_path or element_path.group(1) != "u8":
            raise UnsupportedType(context, token, location)
        length = self.integer_value(size)
        if length is None:
            raise UnsupportedType(context, token, location)
        return TypeIR(kind=TypeKind.ARRAY, width=length, length=length)

    def integer_value(self, text: str) -> int | None:
        """Value of an integer literal or of a constant holding one."""
        value = parse_int_literal(text)
        if value is not None:
            return value
        path = _PATH.match(text.strip())
        if path and path.group(1) in self.constants:
            return parse_int_literal(self.constants[path.group(1)].value_text)
        return None

    def _resolve_struct(self, name: str, token: str, context: str, location: str | None) -> TypeIR:
        if name in self._resolved:
            return self._resolved[name]
        # A struct that contains itself has no finite layout
        if name in self._in_progress:
            raise UnsupportedType(context, token, location)

        self._in_progress.append(name)
        try:
            fields = self.resolve_fields(self.structs[name], name, self.locations.get(name))
        finally:
            self._in_progress.pop()

        resolved = TypeIR(
            kind=TypeKind.STRUCT,
            width=sum(f.type.width for f in fields),
            name=name,
            fields=fields,
        )
        self._resolved[name] = resolved
        return resolved
