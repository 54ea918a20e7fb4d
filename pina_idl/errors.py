"""
Error types raised by the IDL pipeline.

Every stage raises a subclass of IdlError. Nothing is retried or swallowed:
the first error aborts the run and no partial schema is produced.
"""

from __future__ import annotations

from pathlib import Path


class IdlError(Exception):
    """Base class for all IDL generation failures."""

    pass


class IoFailure(IdlError):
    """Raised when a source, manifest, or output file cannot be read or written."""

    def __init__(self, path: str | Path, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"IO error at {self.path}: {cause}")


class SyntaxFailure(IdlError):
    """Raised when a source file does not parse as valid Rust."""

    def __init__(self, path: str | Path, line: int | None = None, snippet: str = ""):
        self.path = Path(path)
        self.line = line
        self.snippet = snippet
        location = f"{self.path}:{line}" if line is not None else str(self.path)
        message = f"Failed to parse Rust source in {location}"
        if snippet:
            message += f": syntax error near '{snippet}'"
        super().__init__(message)


class UnresolvedDiscriminatorReference(IdlError):
    """Raised when a declaration names a discriminator enum or variant that does not exist."""

    def __init__(self, name: str, context: str, location: str | None = None):
        self.name = name
        self.context = context
        self.location = location
        message = f"Could not resolve discriminator reference `{name}` used by `{context}`"
        super().__init__(f"{message} at {location}" if location else message)


class DuplicateDiscriminatorValue(IdlError):
    """Raised when two variants of one discriminator enum share a value."""

    def __init__(self, enum_name: str, value: int, variants: tuple[str, str]):
        self.enum_name = enum_name
        self.value = value
        self.variants = variants
        super().__init__(f"Discriminator `{enum_name}` assigns value {value} to both `{variants[0]}` and `{variants[1]}`")


class DiscriminatorOutOfRange(IdlError):
    """Raised when a variant value does not fit the discriminator's primitive width."""

    def __init__(self, enum_name: str, variant: str, value: int, width: int):
        self.enum_name = enum_name
        self.variant = variant
        self.value = value
        self.width = width
        super().__init__(f"Discriminator `{enum_name}::{variant}` value {value} does not fit in {width} byte(s)")


class DuplicateName(IdlError):
    """Raised when two declarations of the same category share a name."""

    def __init__(self, category: str, name: str):
        self.category = category
        self.name = name
        super().__init__(f"Duplicate {category} name `{name}`")


class UnsupportedType(IdlError):
    """Raised when a field type token cannot be mapped to a schema type."""

    def __init__(self, context: str, token: str, location: str | None = None):
        self.context = context
        self.token = token
        self.location = location
        message = f"Unsupported type `{token}` in `{context}`"
        super().__init__(f"{message} at {location}" if location else message)


class InvalidProgramAddress(IdlError):
    """Raised when the declared program id is not a 32-byte base-58 address."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Invalid program address `{address}`: {reason}")


class MissingProgramAddress(IdlError):
    """Raised when emitting a program whose address was never declared."""

    def __init__(self, program_name: str):
        self.program_name = program_name
        super().__init__(f"No program address found for `{program_name}` (declare_id! macro missing)")


class SerializationFailure(IdlError):
    """Raised when the schema node tree cannot be serialized to JSON."""

    pass


class ScaffoldError(IdlError):
    """Raised when a new project cannot be scaffolded."""

    pass
