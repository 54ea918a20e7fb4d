"""
Discriminator reference resolver.

Builds DiscriminatorIR values from the scanned #[discriminator] enums and
resolves the `discriminator = E, variant = V` references made by accounts,
instructions and events.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import (
    DiscriminatorOutOfRange,
    DuplicateDiscriminatorValue,
    DuplicateName,
    UnresolvedDiscriminatorReference,
    UnsupportedType,
)
from ...utils import split_top_level
from ..scanner.nodes import DiscriminatorDecl, TaggedStructDecl
from .ir_nodes import DiscriminatorIR

# Unsigned primitives a discriminator may be stored as
PRIMITIVE_WIDTHS = {"u8": 1, "u16": 2, "u32": 4, "u64": 8}

DEFAULT_WIDTH = 1


@dataclass(frozen=True)
class ResolvedDiscriminator:
    """A resolved discriminator reference."""

    enum: DiscriminatorIR
    variant: str
    value: int


class DiscriminatorResolver:
    """Resolves discriminator enum and variant references."""

    def __init__(self, declarations: list[DiscriminatorDecl]):
        """
        Build and validate every discriminator enum.

        Raises:
            DuplicateName: If two enums share a name
            UnsupportedType: If an enum names an unknown primitive
            DuplicateDiscriminatorValue: If two variants share a value
            DiscriminatorOutOfRange: If a value does not fit the primitive width
        """
        self._enums: dict[str, DiscriminatorIR] = {}
        for decl in declarations:
            if decl.name in self._enums:
                raise DuplicateName("discriminator", decl.name)
            self._enums[decl.name] = self._build(decl)

    @property
    def discriminators(self) -> tuple[DiscriminatorIR, ...]:
        return tuple(self._enums.values())

    def _build(self, decl: DiscriminatorDecl) -> DiscriminatorIR:
        width = self._width(decl)
        limit = 1 << (8 * width)
        seen: dict[int, str] = {}
        for variant in decl.variants:
            if variant.value in seen:
                raise DuplicateDiscriminatorValue(decl.name, variant.value, (seen[variant.value], variant.name))
            if variant.value >= limit:
                raise DiscriminatorOutOfRange(decl.name, variant.name, variant.value, width)
            seen[variant.value] = variant.name

        return DiscriminatorIR(
            name=decl.name,
            width=width,
            values=tuple((variant.name, variant.value) for variant in decl.variants),
            is_final=decl.is_final,
            docs=tuple(decl.docs),
        )

    def _width(self, decl: DiscriminatorDecl) -> int:
        if decl.primitive is not None:
            if decl.primitive not in PRIMITIVE_WIDTHS:
                raise UnsupportedType(decl.name, decl.primitive, decl.location)
            return PRIMITIVE_WIDTHS[decl.primitive]
        for item in split_top_level(decl.repr or ""):
            if item in PRIMITIVE_WIDTHS:
                return PRIMITIVE_WIDTHS[item]
        return DEFAULT_WIDTH

    def get(self, name: str) -> DiscriminatorIR | None:
        return self._enums.get(name.rsplit("::", 1)[-1])

    def resolve(self, decl: TaggedStructDecl, variant: str | None) -> ResolvedDiscriminator:
        """
        Resolve the discriminator a tagged struct points at.

        Args:
            decl: The account, instruction or event declaration
            variant: Variant to select (the caller applies any default)

        Raises:
            UnresolvedDiscriminatorReference: If the enum or variant does not exist
        """
        if not decl.discriminator_enum:
            raise UnresolvedDiscriminatorReference("<missing discriminator>", decl.name, decl.location)
        enum = self.get(decl.discriminator_enum)
        if enum is None:
            raise UnresolvedDiscriminatorReference(decl.discriminator_enum, decl.name, decl.location)
        if not variant:
            raise UnresolvedDiscriminatorReference(f"{enum.name}::<missing variant>", decl.name, decl.location)
        value = enum.value_of(variant)
        if value is None:
            raise UnresolvedDiscriminatorReference(f"{enum.name}::{variant}", decl.name, decl.location)
        return ResolvedDiscriminator(enum=enum, variant=variant, value=value)
