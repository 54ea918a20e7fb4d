"""
Schema emitter.

Phase 3 of the pipeline: map a ProgramIR to the schema node tree. The
mapping is pure; the same ProgramIR always yields an identical tree.
"""

from __future__ import annotations

from ...errors import MissingProgramAddress
from ..analyzer.ir_nodes import (
    DefaultValueKind,
    DiscriminatedIR,
    ErrorIR,
    FieldIR,
    InstructionAccountIR,
    InstructionIR,
    PdaIR,
    PdaSeedIR,
    ProgramIR,
    SeedKind,
    TypeIR,
    TypeKind,
)
from .nodes import (
    LITTLE_ENDIAN,
    AccountNode,
    DefaultValueNode,
    ErrorNode,
    EventNode,
    FieldNode,
    InstructionAccountNode,
    InstructionNode,
    PdaNode,
    ProgramNode,
    RootNode,
    SeedNode,
    TypeNode,
)

DISCRIMINATOR_FIELD = "discriminator"


class SchemaEmitter:
    """Emits the schema node tree for a ProgramIR."""

    def __init__(self, version: str = ""):
        self.version = version

    def emit(self, program: ProgramIR) -> RootNode:
        """
        Build the node tree.

        Raises:
            MissingProgramAddress: If the program has no declared address
        """
        if not program.address:
            raise MissingProgramAddress(program.name)

        return RootNode(
            version=self.version,
            program=ProgramNode(
                name=program.name,
                address=program.address,
                accounts=tuple(AccountNode(**self._layout(a)) for a in program.accounts),
                instructions=tuple(self._instruction(i, program.address) for i in program.instructions),
                events=tuple(EventNode(**self._layout(e)) for e in program.events),
                errors=tuple(self._error(e) for e in program.errors),
                pdas=tuple(self._pda(p) for p in program.pdas),
            ),
        )

    def _layout(self, ir: DiscriminatedIR) -> dict:
        """Name, discriminator bytes, fields with the tag field first, and docs."""
        tag = FieldNode(
            name=DISCRIMINATOR_FIELD,
            type=TypeNode(kind="integer", width=ir.discriminator_width, signed=False, endian=LITTLE_ENDIAN),
        )
        return {
            "name": ir.name,
            "discriminator": tuple(ir.discriminator_bytes),
            "fields": (tag,) + tuple(self._field(f) for f in ir.fields),
            "docs": ir.docs,
        }

    def _instruction(self, ir: InstructionIR, program_address: str) -> InstructionNode:
        layout = self._layout(ir)
        return InstructionNode(
            name=layout["name"],
            discriminator=layout["discriminator"],
            accounts=tuple(self._instruction_account(a, program_address) for a in ir.accounts),
            args=layout["fields"],
            docs=layout["docs"],
        )

    def _instruction_account(self, ir: InstructionAccountIR, program_address: str) -> InstructionAccountNode:
        default = None
        if ir.default_value is not None:
            if ir.default_value.kind == DefaultValueKind.PROGRAM_ID:
                default = DefaultValueNode(kind=DefaultValueKind.PROGRAM_ID.value, address=program_address)
            else:
                default = DefaultValueNode(kind=DefaultValueKind.PUBLIC_KEY.value, address=ir.default_value.address)
        return InstructionAccountNode(
            name=ir.name,
            is_signer=ir.is_signer,
            is_writable=ir.is_writable,
            is_optional=ir.is_optional,
            is_pda=ir.is_pda,
            pda=ir.pda_name,
            default_value=default,
            docs=ir.docs,
        )

    def _field(self, ir: FieldIR) -> FieldNode:
        return FieldNode(name=ir.name, type=self._type(ir.type), docs=ir.docs)

    def _type(self, ir: TypeIR) -> TypeNode:
        if ir.kind == TypeKind.INTEGER:
            return TypeNode(kind="integer", width=ir.width, signed=ir.signed, endian=LITTLE_ENDIAN)
        if ir.kind == TypeKind.BOOLEAN:
            return TypeNode(kind="boolean", width=ir.width)
        if ir.kind == TypeKind.ARRAY:
            return TypeNode(kind="array", width=ir.width, length=ir.length)
        if ir.kind == TypeKind.ADDRESS:
            return TypeNode(kind="address", width=ir.width, endian=LITTLE_ENDIAN)
        return TypeNode(
            kind="struct",
            name=ir.name,
            width=ir.width,
            fields=tuple(self._field(f) for f in ir.fields),
        )

    def _error(self, ir: ErrorIR) -> ErrorNode:
        return ErrorNode(name=ir.name, code=ir.code, message=ir.message, docs=ir.docs)

    def _pda(self, ir: PdaIR) -> PdaNode:
        return PdaNode(name=ir.name, seeds=tuple(self._seed(s) for s in ir.seeds), docs=ir.docs)

    def _seed(self, ir: PdaSeedIR) -> SeedNode:
        seed_type = self._type(ir.type) if ir.type is not None else None
        if ir.kind == SeedKind.ACCOUNT_REF:
            return SeedNode(kind="accountRef", name=ir.name, type=seed_type)
        if ir.kind == SeedKind.ARG_REF:
            return SeedNode(kind="argRef", name=ir.name, type=seed_type)
        if ir.opaque:
            return SeedNode(kind="literal", opaque=True, value=ir.expression)
        try:
            return SeedNode(kind="literal", encoding="utf8", value=ir.value.decode("utf-8"))
        except UnicodeDecodeError:
            return SeedNode(kind="literal", encoding="base16", value=ir.value.hex())
