"""
Emitter module.

Contains the schema node definitions and the emitter that builds them from
the program IR.
"""

from __future__ import annotations

from .emitter import SchemaEmitter
from .nodes import (
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

__all__ = [
    "RootNode",
    "ProgramNode",
    "AccountNode",
    "EventNode",
    "InstructionNode",
    "InstructionAccountNode",
    "DefaultValueNode",
    "ErrorNode",
    "PdaNode",
    "SeedNode",
    "FieldNode",
    "TypeNode",
    "SchemaEmitter",
]
