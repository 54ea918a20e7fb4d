"""
Schema node definitions.

The node tree the emitter builds from a ProgramIR. Every node converts to a
plain dict with a fixed key order, which is what the serializer writes out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

LITTLE_ENDIAN = "little"


@dataclass(frozen=True)
class TypeNode:
    """A type descriptor. Only the attributes relevant to `kind` are emitted."""

    kind: str = "integer"
    width: int = 0
    signed: bool | None = None  # integer
    endian: str | None = None  # integer, address
    length: int | None = None  # array
    name: str | None = None  # struct
    fields: tuple[FieldNode, ...] | None = None  # struct

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"kind": self.kind}
        if self.name is not None:
            d["name"] = self.name
        d["width"] = self.width
        if self.signed is not None:
            d["signed"] = self.signed
        if self.length is not None:
            d["length"] = self.length
        if self.endian is not None:
            d["endian"] = self.endian
        if self.fields is not None:
            d["fields"] = [f.to_dict() for f in self.fields]
        return d


@dataclass(frozen=True)
class FieldNode:
    name: str = ""
    type: TypeNode = field(default_factory=TypeNode)
    docs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type.to_dict(), "docs": list(self.docs)}


@dataclass(frozen=True)
class AccountNode:
    name: str = ""
    discriminator: tuple[int, ...] = ()
    fields: tuple[FieldNode, ...] = ()
    docs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "discriminator": list(self.discriminator),
            "fields": [f.to_dict() for f in self.fields],
            "docs": list(self.docs),
        }


@dataclass(frozen=True)
class EventNode(AccountNode):
    pass


@dataclass(frozen=True)
class DefaultValueNode:
    kind: str = "publicKey"  # publicKey or programId
    address: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "address": self.address}


@dataclass(frozen=True)
class InstructionAccountNode:
    name: str = ""
    is_signer: bool = False
    is_writable: bool = False
    is_optional: bool = False
    is_pda: bool = False
    pda: str | None = None
    default_value: DefaultValueNode | None = None
    docs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "isSigner": self.is_signer,
            "isWritable": self.is_writable,
            "isOptional": self.is_optional,
            "isPda": self.is_pda,
        }
        if self.pda is not None:
            d["pda"] = self.pda
        if self.default_value is not None:
            d["defaultValue"] = self.default_value.to_dict()
        d["docs"] = list(self.docs)
        return d


@dataclass(frozen=True)
class InstructionNode:
    name: str = ""
    discriminator: tuple[int, ...] = ()
    accounts: tuple[InstructionAccountNode, ...] = ()
    args: tuple[FieldNode, ...] = ()
    docs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "discriminator": list(self.discriminator),
            "accounts": [a.to_dict() for a in self.accounts],
            "args": [a.to_dict() for a in self.args],
            "docs": list(self.docs),
        }


@dataclass(frozen=True)
class ErrorNode:
    name: str = ""
    code: int = 0
    message: str = ""
    docs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "code": self.code, "message": self.message, "docs": list(self.docs)}


@dataclass(frozen=True)
class SeedNode:
    """A PDA seed: literal, opaque literal, accountRef or argRef."""

    kind: str = "literal"
    encoding: str | None = None  # utf8 or base16, for literals
    value: str | None = None  # literal text, or the raw expression of an opaque seed
    opaque: bool = False
    name: str | None = None  # for references
    type: TypeNode | None = None  # for references, when known

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"kind": self.kind}
        if self.opaque:
            d["opaque"] = True
        if self.encoding is not None:
            d["encoding"] = self.encoding
        if self.value is not None:
            d["value"] = self.value
        if self.name is not None:
            d["name"] = self.name
        if self.type is not None:
            d["type"] = self.type.to_dict()
        return d


@dataclass(frozen=True)
class PdaNode:
    name: str = ""
    seeds: tuple[SeedNode, ...] = ()
    docs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "seeds": [s.to_dict() for s in self.seeds], "docs": list(self.docs)}


@dataclass(frozen=True)
class ProgramNode:
    name: str = ""
    address: str = ""
    accounts: tuple[AccountNode, ...] = ()
    instructions: tuple[InstructionNode, ...] = ()
    events: tuple[EventNode, ...] = ()
    errors: tuple[ErrorNode, ...] = ()
    pdas: tuple[PdaNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "accounts": [a.to_dict() for a in self.accounts],
            "instructions": [i.to_dict() for i in self.instructions],
            "events": [e.to_dict() for e in self.events],
            "errors": [e.to_dict() for e in self.errors],
            "pdas": [p.to_dict() for p in self.pdas],
        }


@dataclass(frozen=True)
class RootNode:
    """Top of the schema document."""

    program: ProgramNode = field(default_factory=ProgramNode)
    standard: str = "pina-idl"
    version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "rootNode",
            "standard": self.standard,
            "version": self.version,
            "program": self.program.to_dict(),
        }
