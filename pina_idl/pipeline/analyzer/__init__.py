"""
Analyzer module.

Contains discriminator resolution, field type classification, PDA seed
extraction and the assembler that builds the program IR.
"""

from __future__ import annotations

from .assembler import ProgramAssembler, validate_address
from .ir_nodes import (
    AccountIR,
    DefaultValueIR,
    DefaultValueKind,
    DiscriminatorIR,
    ErrorIR,
    EventIR,
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
from .reference_resolver import DiscriminatorResolver
from .seeds import SeedExtractor
from .type_resolver import TypeResolver

__all__ = [
    "ProgramIR",
    "DiscriminatorIR",
    "AccountIR",
    "InstructionIR",
    "InstructionAccountIR",
    "EventIR",
    "ErrorIR",
    "FieldIR",
    "TypeIR",
    "TypeKind",
    "PdaIR",
    "PdaSeedIR",
    "SeedKind",
    "DefaultValueIR",
    "DefaultValueKind",
    "DiscriminatorResolver",
    "TypeResolver",
    "SeedExtractor",
    "ProgramAssembler",
    "validate_address",
]
