"""
Scanner module.

Contains the Rust parser wrapper, the doc/attribute extractor, the
declaration node definitions and the declaration scanner.
"""

from __future__ import annotations

from .nodes import (
    AccountsStructDecl,
    AssertionDecl,
    ConstantDecl,
    Declaration,
    DeclarationKind,
    DiscriminatorDecl,
    DispatchDecl,
    ErrorEnumDecl,
    FieldDecl,
    PdaCallDecl,
    ProcessorDecl,
    ProgramIdDecl,
    ScanResult,
    SeedInvocationDecl,
    SeedMacroDecl,
    StructDecl,
    TaggedStructDecl,
    VariantDecl,
)
from .parser import RustParser
from .scanner import DeclarationScanner

__all__ = [
    "Declaration",
    "DeclarationKind",
    "DiscriminatorDecl",
    "TaggedStructDecl",
    "ErrorEnumDecl",
    "ProgramIdDecl",
    "ConstantDecl",
    "SeedMacroDecl",
    "SeedInvocationDecl",
    "PdaCallDecl",
    "StructDecl",
    "AccountsStructDecl",
    "AssertionDecl",
    "ProcessorDecl",
    "DispatchDecl",
    "FieldDecl",
    "VariantDecl",
    "ScanResult",
    "RustParser",
    "DeclarationScanner",
]
