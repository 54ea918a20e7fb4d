"""
Declaration node definitions produced by the scanner.

These nodes describe the tagged items found in one Rust source file before
any cross-file reference resolution or type classification. Text fields hold
the source tokens as written (whitespace-normalized).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DeclarationKind(str, Enum):
    """Closed set of declaration kinds the scanner recognizes."""

    DISCRIMINATOR = "discriminator"  # #[discriminator] enum
    ACCOUNT = "account"  # #[account(discriminator = ...)] struct
    INSTRUCTION = "instruction"  # #[instruction(discriminator = ..., variant = ...)] struct
    EVENT = "event"  # #[event(discriminator = ...)] struct
    ERROR = "error"  # #[error] enum
    PROGRAM_ID = "program_id"  # declare_id!("...")
    CONSTANT = "constant"  # const NAME: T = value;
    SEED_MACRO = "seed_macro"  # macro_rules! *_seeds
    SEED_INVOCATION = "seed_invocation"  # *_seeds!(...) inside a function body
    PDA_CALL = "pda_call"  # find_program_address(&[...], ...) and friends
    STRUCT = "struct"  # untagged struct with named fields
    ACCOUNTS_STRUCT = "accounts_struct"  # #[derive(Accounts)] struct
    PROCESSOR = "processor"  # impl ProcessAccountInfos for X
    DISPATCH = "dispatch"  # match arm inside process_instruction


@dataclass
class Declaration:
    """Base class for all scanned declarations."""

    kind: DeclarationKind = DeclarationKind.STRUCT
    name: str = ""

    # Location in the source (for error messages)
    source_path: str = ""
    line: int = 0

    docs: list[str] = field(default_factory=list)

    @property
    def location(self) -> str:
        return f"{self.source_path}:{self.line}"


@dataclass
class FieldDecl:
    """A named struct field."""

    name: str = ""
    type_token: str = ""
    docs: list[str] = field(default_factory=list)


@dataclass
class VariantDecl:
    """An enum variant."""

    name: str = ""
    explicit_value: int | None = None  # Discriminant as written, if any
    value: int = 0  # Explicit value, or previous + 1
    docs: list[str] = field(default_factory=list)


@dataclass
class DiscriminatorDecl(Declaration):
    """A #[discriminator] enum."""

    primitive: str | None = None  # From #[discriminator(primitive = ...)]
    repr: str | None = None  # From #[repr(...)]
    is_final: bool = False
    variants: list[VariantDecl] = field(default_factory=list)


@dataclass
class TaggedStructDecl(Declaration):
    """An account, instruction, or event struct."""

    discriminator_enum: str | None = None
    variant: str | None = None
    fields: list[FieldDecl] = field(default_factory=list)


@dataclass
class ErrorEnumDecl(Declaration):
    """A #[error] enum."""

    is_final: bool = False
    variants: list[VariantDecl] = field(default_factory=list)


@dataclass
class ProgramIdDecl(Declaration):
    """A declare_id! invocation."""

    address: str = ""
    # Inline modules enclosing the invocation; 0 at the top of a file
    module_depth: int = 0


@dataclass
class ConstantDecl(Declaration):
    """A const item."""

    type_token: str = ""
    value_text: str = ""


@dataclass
class SeedMacroDecl(Declaration):
    """A macro_rules! seed helper, reduced to its arm with the fewest parameters."""

    params: list[str] = field(default_factory=list)
    seeds: list[str] = field(default_factory=list)  # Seed array elements as written


@dataclass
class SeedInvocationDecl(Declaration):
    """A call site of a seed macro, with local bindings substituted into its arguments."""

    arguments: list[str] = field(default_factory=list)


@dataclass
class PdaCallDecl(Declaration):
    """A PDA-deriving helper call with an inline seed array."""

    seeds: list[str] = field(default_factory=list)


@dataclass
class StructDecl(Declaration):
    """An untagged struct, kept so field types can reference it."""

    fields: list[FieldDecl] = field(default_factory=list)


@dataclass
class AccountsStructDecl(Declaration):
    """A #[derive(Accounts)] struct listing an instruction's account slots."""

    fields: list[FieldDecl] = field(default_factory=list)


@dataclass
class AssertionDecl:
    """One validation call on an account field, e.g. self.payer.assert_signer()."""

    field_name: str = ""
    method: str = ""
    arguments: list[str] = field(default_factory=list)


@dataclass
class ProcessorDecl(Declaration):
    """An impl ProcessAccountInfos block for an accounts struct."""

    assertions: list[AssertionDecl] = field(default_factory=list)


@dataclass
class DispatchDecl(Declaration):
    """One arm of the instruction dispatch: Enum::Variant => Accounts::try_from(..)."""

    enum_name: str | None = None
    variant: str = ""
    accounts_struct: str = ""


@dataclass
class ScanResult:
    """All declarations found in one source file, in source order."""

    path: str = ""
    declarations: list[Declaration] = field(default_factory=list)

    def of_kind(self, kind: DeclarationKind) -> list[Declaration]:
        """Return the declarations of one kind, in source order."""
        return [decl for decl in self.declarations if decl.kind == kind]
