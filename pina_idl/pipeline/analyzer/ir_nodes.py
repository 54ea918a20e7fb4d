"""
IR (Intermediate Representation) node definitions.

These nodes describe one program after all files are merged: every
discriminator reference is resolved and every field type is classified.
IR values are immutable once the assembler returns them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TypeKind(Enum):
    """Kind of a classified field type."""

    INTEGER = "integer"  # u8..u64, i8..i64, PodU16..PodI64
    BOOLEAN = "boolean"  # bool, PodBool
    ARRAY = "array"  # [u8; N]
    ADDRESS = "address"  # Address, Pubkey
    STRUCT = "struct"  # Reference to a scanned struct


@dataclass(frozen=True)
class TypeIR:
    """A classified field type with its byte layout."""

    kind: TypeKind = TypeKind.INTEGER
    width: int = 0  # Size in bytes

    # For integers
    signed: bool = False

    # For arrays
    length: int = 0

    # For struct references
    name: str = ""
    fields: tuple[FieldIR, ...] = ()


@dataclass(frozen=True)
class FieldIR:
    """A struct field with its resolved type."""

    name: str = ""
    type_token: str = ""  # Type as written in the source
    type: TypeIR = field(default_factory=TypeIR)
    docs: tuple[str, ...] = ()


@dataclass(frozen=True)
class DiscriminatorIR:
    """A discriminator enum: primitive width plus variant values in declaration order."""

    name: str = ""
    width: int = 1
    values: tuple[tuple[str, int], ...] = ()
    is_final: bool = False
    docs: tuple[str, ...] = ()

    def value_of(self, variant: str) -> int | None:
        for name, value in self.values:
            if name == variant:
                return value
        return None


@dataclass(frozen=True)
class DiscriminatedIR:
    """Common shape of accounts, instructions and events."""

    name: str = ""
    discriminator_enum: str = ""
    variant: str = ""
    discriminator_value: int = 0
    discriminator_width: int = 1
    fields: tuple[FieldIR, ...] = ()
    docs: tuple[str, ...] = ()

    @property
    def discriminator_bytes(self) -> bytes:
        """W-byte little-endian encoding of the discriminator value."""
        return self.discriminator_value.to_bytes(self.discriminator_width, "little")


@dataclass(frozen=True)
class AccountIR(DiscriminatedIR):
    """An #[account] struct."""

    pass


@dataclass(frozen=True)
class EventIR(DiscriminatedIR):
    """An #[event] struct."""

    pass


class DefaultValueKind(Enum):
    """Where an instruction account's default address comes from."""

    PROGRAM_ID = "programId"
    PUBLIC_KEY = "publicKey"


@dataclass(frozen=True)
class DefaultValueIR:
    kind: DefaultValueKind = DefaultValueKind.PUBLIC_KEY
    address: str = ""


@dataclass(frozen=True)
class InstructionAccountIR:
    """One account slot of an instruction, from its #[derive(Accounts)] struct."""

    name: str = ""
    is_signer: bool = False
    is_writable: bool = False
    is_optional: bool = False
    is_pda: bool = False
    pda_name: str | None = None
    default_value: DefaultValueIR | None = None
    docs: tuple[str, ...] = ()


@dataclass(frozen=True)
class InstructionIR(DiscriminatedIR):
    """An #[instruction] struct; `fields` are the instruction arguments."""

    struct_name: str = ""  # Name of the instruction data struct
    accounts: tuple[InstructionAccountIR, ...] = ()


@dataclass(frozen=True)
class ErrorIR:
    """One variant of an #[error] enum."""

    name: str = ""
    code: int = 0
    docs: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return self.docs[0] if self.docs else ""


class SeedKind(Enum):
    LITERAL = "literal"
    ACCOUNT_REF = "account_ref"
    ARG_REF = "arg_ref"


@dataclass(frozen=True)
class PdaSeedIR:
    """One PDA seed: literal bytes, or a reference to an account or an instruction argument."""

    kind: SeedKind = SeedKind.LITERAL
    value: bytes = b""  # For literals
    name: str = ""  # For references
    type: TypeIR | None = None  # For references, when known

    # Unrecognized seed shapes are kept as an opaque literal holding the raw expression
    opaque: bool = False
    expression: str = ""


@dataclass(frozen=True)
class PdaIR:
    """A program-derived address and its ordered seeds."""

    name: str = ""
    seeds: tuple[PdaSeedIR, ...] = ()
    docs: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProgramIR:
    """The complete intermediate representation of one program."""

    name: str = ""
    address: str | None = None
    discriminators: tuple[DiscriminatorIR, ...] = ()
    accounts: tuple[AccountIR, ...] = ()
    instructions: tuple[InstructionIR, ...] = ()
    events: tuple[EventIR, ...] = ()
    errors: tuple[ErrorIR, ...] = ()
    pdas: tuple[PdaIR, ...] = ()
