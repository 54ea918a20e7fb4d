"""
IR assembler.

Phase 2 of the pipeline: merge the scan results of every file of a program
into one ProgramIR. Cross-file references are resolved here, since only the
full file set knows every discriminator, struct and constant.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import base58

from ...errors import DuplicateName, InvalidProgramAddress
from ...utils import to_snake_case
from ..config import DEFAULT_KNOWN_ADDRESSES
from ..scanner.nodes import (
    AccountsStructDecl,
    ConstantDecl,
    Declaration,
    DeclarationKind,
    DispatchDecl,
    ErrorEnumDecl,
    PdaCallDecl,
    ProcessorDecl,
    ProgramIdDecl,
    ScanResult,
    SeedInvocationDecl,
    SeedMacroDecl,
    StructDecl,
    TaggedStructDecl,
)
from .ir_nodes import (
    AccountIR,
    DefaultValueIR,
    DefaultValueKind,
    ErrorIR,
    EventIR,
    FieldIR,
    InstructionAccountIR,
    InstructionIR,
    ProgramIR,
)
from .reference_resolver import DiscriminatorResolver
from .seeds import SeedExtractor
from .type_resolver import TypeResolver

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 32

# Address paths that refer to the program being described
PROGRAM_ID_PATHS = {"ID", "crate::ID", "self::ID", "super::ID", "program_id"}

SIGNER_ASSERTIONS = {"assert_signer"}
WRITABLE_ASSERTIONS = {"assert_writable"}
PDA_ASSERTIONS = {"assert_seeds", "assert_seeds_with_bump", "assert_canonical_bump"}
ADDRESS_ASSERTIONS = {"assert_address"}


class _Declarations:
    """Declarations of all files grouped by kind, in first-seen order."""

    def __init__(self, scans: Iterable[ScanResult]):
        self._by_kind: dict[DeclarationKind, list[Declaration]] = {kind: [] for kind in DeclarationKind}
        for scan in scans:
            for decl in scan.declarations:
                self._by_kind[decl.kind].append(decl)

    def __getitem__(self, kind: DeclarationKind) -> list:
        return self._by_kind[kind]


class ProgramAssembler:
    """Assembles a ProgramIR from scan results."""

    def __init__(self, known_addresses: dict[str, str] | None = None):
        """
        Initialize the assembler.

        Args:
            known_addresses: Address paths recognized as instruction account defaults
        """
        self.known_addresses = dict(DEFAULT_KNOWN_ADDRESSES if known_addresses is None else known_addresses)

    def assemble(self, name: str, scans: Iterable[ScanResult]) -> ProgramIR:
        """
        Merge scan results into a ProgramIR.

        Files are processed in lexicographic path order so the output does not
        depend on the order the caller scanned them in.

        Raises:
            InvalidProgramAddress: If the declared program id is not a 32-byte address
            DuplicateName: On two program ids or two same-named declarations in a category
            UnresolvedDiscriminatorReference: If a struct names an unknown enum or variant
            DuplicateDiscriminatorValue: If two variants of one enum share a value
            DiscriminatorOutOfRange: If a variant value does not fit its enum width
            UnsupportedType: If a field type cannot be classified
        """
        decls = _Declarations(sorted(scans, key=lambda scan: scan.path))

        address = self._program_address(decls[DeclarationKind.PROGRAM_ID])
        resolver = DiscriminatorResolver(decls[DeclarationKind.DISCRIMINATOR])

        constants: dict[str, ConstantDecl] = {}
        for constant in decls[DeclarationKind.CONSTANT]:
            constants.setdefault(constant.name, constant)
        structs: dict[str, StructDecl] = {}
        for struct in decls[DeclarationKind.STRUCT]:
            structs.setdefault(struct.name, struct)
        types = TypeResolver(
            {n: s.fields for n, s in structs.items()},
            constants,
            {n: s.location for n, s in structs.items()},
        )

        accounts = self._discriminated(decls[DeclarationKind.ACCOUNT], resolver, types, AccountIR, "account")
        events = self._discriminated(decls[DeclarationKind.EVENT], resolver, types, EventIR, "event")
        instruction_decls: list[TaggedStructDecl] = decls[DeclarationKind.INSTRUCTION]
        instruction_fields = {decl.name: types.resolve_fields(decl.fields, decl.name, decl.location) for decl in instruction_decls}

        seeds = SeedExtractor(constants, instruction_fields)
        macros: list[SeedMacroDecl] = decls[DeclarationKind.SEED_MACRO]
        invocations: list[SeedInvocationDecl] = decls[DeclarationKind.SEED_INVOCATION]
        calls: list[PdaCallDecl] = decls[DeclarationKind.PDA_CALL]
        pdas = seeds.extract(macros, invocations, calls)

        instructions = self._instructions(instruction_decls, instruction_fields, resolver, seeds, decls)
        errors = self._errors(decls[DeclarationKind.ERROR])

        program = ProgramIR(
            name=name,
            address=address,
            discriminators=resolver.discriminators,
            accounts=accounts,
            instructions=instructions,
            events=events,
            errors=errors,
            pdas=pdas,
        )
        logger.debug(
            "Assembled %s: %d accounts, %d instructions, %d events, %d errors, %d pdas",
            name,
            len(accounts),
            len(instructions),
            len(events),
            len(errors),
            len(pdas),
        )
        return program

    def _program_address(self, declarations: list[ProgramIdDecl]) -> str | None:
        address = None
        for decl in declarations:
            # declare_id! inside an inline module names another program
            if decl.module_depth > 0:
                logger.debug("Ignoring declare_id!(%s) nested in a module at %s:%s", decl.address, decl.source_path, decl.line)
                continue
            if address is not None and decl.address != address:
                raise DuplicateName("program id", decl.address)
            address = decl.address
        if address is not None:
            validate_address(address)
        return address

    def _discriminated(self, declarations: list[TaggedStructDecl], resolver, types, ir_class, category: str) -> tuple:
        """Build account or event IR; both default the variant to the struct name."""
        seen: set[str] = set()
        result = []
        for decl in declarations:
            if decl.name in seen:
                raise DuplicateName(category, decl.name)
            seen.add(decl.name)
            resolved = resolver.resolve(decl, _last_segment(decl.variant) if decl.variant else decl.name)
            result.append(
                ir_class(
                    name=decl.name,
                    discriminator_enum=resolved.enum.name,
                    variant=resolved.variant,
                    discriminator_value=resolved.value,
                    discriminator_width=resolved.enum.width,
                    fields=types.resolve_fields(decl.fields, decl.name, decl.location),
                    docs=tuple(decl.docs),
                )
            )
        return tuple(result)

    def _instructions(
        self,
        declarations: list[TaggedStructDecl],
        fields: dict[str, tuple[FieldIR, ...]],
        resolver: DiscriminatorResolver,
        seeds: SeedExtractor,
        decls: _Declarations,
    ) -> tuple[InstructionIR, ...]:
        dispatch: list[DispatchDecl] = decls[DeclarationKind.DISPATCH]
        accounts_structs: dict[str, AccountsStructDecl] = {}
        for struct in decls[DeclarationKind.ACCOUNTS_STRUCT]:
            accounts_structs.setdefault(struct.name, struct)
        processors: list[ProcessorDecl] = decls[DeclarationKind.PROCESSOR]

        seen: set[str] = set()
        result = []
        for decl in declarations:
            resolved = resolver.resolve(decl, _last_segment(decl.variant) if decl.variant else None)
            name = to_snake_case(resolved.variant)
            if name in seen:
                raise DuplicateName("instruction", name)
            seen.add(name)

            arm = next(
                (d for d in dispatch if d.variant == resolved.variant and (d.enum_name is None or d.enum_name == resolved.enum.name)),
                None,
            )
            slots: tuple[InstructionAccountIR, ...] = ()
            if arm is not None:
                if arm.accounts_struct in accounts_structs:
                    slots = self._instruction_accounts(accounts_structs[arm.accounts_struct], processors, seeds)
                else:
                    logger.warning("Instruction %s dispatches to unknown accounts struct %s", name, arm.accounts_struct)

            result.append(
                InstructionIR(
                    name=name,
                    discriminator_enum=resolved.enum.name,
                    variant=resolved.variant,
                    discriminator_value=resolved.value,
                    discriminator_width=resolved.enum.width,
                    fields=fields[decl.name],
                    docs=tuple(decl.docs),
                    struct_name=decl.name,
                    accounts=slots,
                )
            )
        return tuple(result)

    def _instruction_accounts(
        self,
        struct: AccountsStructDecl,
        processors: list[ProcessorDecl],
        seeds: SeedExtractor,
    ) -> tuple[InstructionAccountIR, ...]:
        assertions = [a for p in processors if p.name == struct.name for a in p.assertions]

        slots = []
        for f in struct.fields:
            is_signer = is_writable = is_pda = False
            pda_name = None
            default_value = None
            for assertion in assertions:
                if assertion.field_name != f.name:
                    continue
                if assertion.method in SIGNER_ASSERTIONS:
                    is_signer = True
                elif assertion.method in WRITABLE_ASSERTIONS:
                    is_writable = True
                elif assertion.method in PDA_ASSERTIONS:
                    is_pda = True
                    if assertion.arguments and pda_name is None:
                        pda_name = seeds.pda_name_for_seeds(assertion.arguments[0])
                elif assertion.method in ADDRESS_ASSERTIONS and assertion.arguments:
                    default_value = self._default_value(assertion.arguments[0])

            slots.append(
                InstructionAccountIR(
                    name=f.name,
                    is_signer=is_signer,
                    is_writable=is_writable,
                    is_optional=f.type_token.startswith("Option<"),
                    is_pda=is_pda,
                    pda_name=pda_name,
                    default_value=default_value,
                    docs=tuple(f.docs),
                )
            )
        return tuple(slots)

    def _default_value(self, argument: str) -> DefaultValueIR | None:
        path = argument.strip().lstrip("&").strip()
        if path in PROGRAM_ID_PATHS:
            return DefaultValueIR(kind=DefaultValueKind.PROGRAM_ID)
        for known, address in self.known_addresses.items():
            if path == known or path.endswith(f"::{known}"):
                return DefaultValueIR(kind=DefaultValueKind.PUBLIC_KEY, address=address)
        return None

    def _errors(self, declarations: list[ErrorEnumDecl]) -> tuple[ErrorIR, ...]:
        seen: set[str] = set()
        result = []
        for decl in declarations:
            for variant in decl.variants:
                if variant.name in seen:
                    raise DuplicateName("error", variant.name)
                seen.add(variant.name)
                code = variant.explicit_value if variant.explicit_value is not None else 0
                result.append(ErrorIR(name=variant.name, code=code, docs=tuple(variant.docs)))
        return tuple(result)


def validate_address(address: str) -> None:
    """
    Check that an address is base-58 text decoding to exactly 32 bytes.

    Raises:
        InvalidProgramAddress: Otherwise
    """
    if not address:
        raise InvalidProgramAddress(address, "declare_id! has no address literal")
    try:
        decoded = base58.b58decode(address)
    except ValueError as e:
        raise InvalidProgramAddress(address, str(e)) from e
    if len(decoded) != ADDRESS_LENGTH:
        raise InvalidProgramAddress(address, f"decodes to {len(decoded)} bytes, expected {ADDRESS_LENGTH}")


def _last_segment(path: str) -> str:
    return path.rsplit("::", 1)[-1]
