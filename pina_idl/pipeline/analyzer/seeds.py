"""
PDA seed extraction.

Turns seed macros, their invocation sites and direct PDA helper calls into
PdaIR values. Seed expressions are classified by shape; shapes that are not
recognized become opaque literal seeds and a warning is logged.
"""

from __future__ import annotations

import logging
import re

from ..scanner.docs import decode_byte_string
from ..scanner.nodes import ConstantDecl, PdaCallDecl, SeedInvocationDecl, SeedMacroDecl
from .ir_nodes import FieldIR, PdaIR, PdaSeedIR, SeedKind
from .type_resolver import address_type

logger = logging.getLogger(__name__)

# Conversions applied to a seed value that do not change what it refers to
_PASSTHROUGH_SUFFIXES = (
    ".as_ref()",
    ".as_slice()",
    ".as_bytes()",
    ".address()",
    ".key()",
    ".to_le_bytes()",
    ".to_bytes()",
)

_PATH = re.compile(r"^(?:\w+::)*(\w+)$")
_PARAM = re.compile(r"^\$(\w+)$")
_SELF_FIELD = re.compile(r"^self\.(\w+)$")
_INSTRUCTION_FIELD = re.compile(r"^(\w+)(?:<[^>]*>)?::try_from_bytes\(.*\)\??\.(\w+)(?:\.0)?$")
_SEED_MACRO_CALL = re.compile(r"^&?\s*(\w+)!\s*[(\[{]")


def pda_name_from_macro(macro: str) -> str:
    """`counter_seeds` -> `counter`, `seeds_vault` -> `vault`."""
    if macro.endswith("_seeds"):
        return macro[: -len("_seeds")]
    if macro.startswith("seeds_"):
        return macro[len("seeds_") :]
    return macro


def pda_name_from_constant(constant: str) -> str:
    """`COUNTER_SEED` -> `counter`, `VAULT_PREFIX` -> `vault`."""
    name = constant.lower()
    for suffix in ("_seed", "_prefix"):
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


def strip_passthrough(expression: str) -> str:
    expression = expression.strip().lstrip("&").strip()
    changed = True
    while changed:
        changed = False
        for suffix in _PASSTHROUGH_SUFFIXES:
            if expression.endswith(suffix):
                expression = expression[: -len(suffix)]
                changed = True
    return expression


def seed_macro_name(expression: str) -> str | None:
    """Name of the seed macro an expression invokes, if any."""
    match = _SEED_MACRO_CALL.match(expression.strip())
    if match and "seeds" in match.group(1):
        return match.group(1)
    return None


class SeedExtractor:
    """Builds PDA descriptions from seed macros and PDA helper calls."""

    def __init__(self, constants: dict[str, ConstantDecl], instruction_fields: dict[str, tuple[FieldIR, ...]]):
        """
        Initialize the extractor.

        Args:
            constants: Scanned constants, by name
            instruction_fields: Resolved fields of every instruction struct, by struct name
        """
        self.constants = constants
        self.instruction_fields = instruction_fields

    def byte_constant(self, expression: str) -> tuple[str, bytes] | None:
        """Name and value of the byte-string constant an expression names, if any."""
        path = _PATH.match(strip_passthrough(expression))
        if not path or path.group(1) not in self.constants:
            return None
        value = decode_byte_string(self.constants[path.group(1)].value_text)
        if value is None:
            return None
        return path.group(1), value

    def pda_name_for_seeds(self, expression: str) -> str | None:
        """PDA name for a seed argument: a seed macro call, or an array led by a named constant."""
        macro = seed_macro_name(expression)
        if macro is not None:
            return pda_name_from_macro(macro)
        text = expression.strip().lstrip("&").strip()
        if text.startswith("["):
            first = text[1:].split(",", 1)[0].rstrip("]")
            constant = self.byte_constant(first)
            if constant is not None:
                return pda_name_from_constant(constant[0])
        return None

    def extract(
        self,
        macros: list[SeedMacroDecl],
        invocations: list[SeedInvocationDecl],
        calls: list[PdaCallDecl],
    ) -> tuple[PdaIR, ...]:
        """
        Extract every PDA, macros first, then direct helper calls.

        A PDA name that is already taken keeps its first definition.
        """
        pdas: dict[str, PdaIR] = {}

        for macro in macros:
            name = pda_name_from_macro(macro.name)
            if name in pdas:
                continue
            invocation = next((i for i in invocations if i.name == macro.name), None)
            arguments = dict(zip(macro.params, invocation.arguments)) if invocation is not None else {}
            seeds = tuple(self.classify(seed, arguments) for seed in macro.seeds)
            pdas[name] = PdaIR(name=name, seeds=seeds, docs=tuple(macro.docs))

        for call in calls:
            if not call.seeds:
                continue
            constant = self.byte_constant(call.seeds[0])
            if constant is None:
                continue
            name = pda_name_from_constant(constant[0])
            if name in pdas:
                continue
            pdas[name] = PdaIR(name=name, seeds=tuple(self.classify(seed) for seed in call.seeds))

        return tuple(pdas.values())

    def classify(self, expression: str, arguments: dict[str, str] | None = None) -> PdaSeedIR:
        """
        Classify one seed expression.

        Args:
            expression: Seed expression as written
            arguments: Macro parameter name -> expression passed at the invocation site
        """
        literal = decode_byte_string(expression)
        if literal is not None:
            return PdaSeedIR(kind=SeedKind.LITERAL, value=literal)

        constant = self.byte_constant(expression)
        if constant is not None:
            return PdaSeedIR(kind=SeedKind.LITERAL, value=constant[1])

        text = strip_passthrough(expression)

        param = _PARAM.match(text)
        if param:
            bound = (arguments or {}).get(param.group(1))
            if bound is None:
                return PdaSeedIR(kind=SeedKind.ACCOUNT_REF, name=param.group(1), type=address_type())
            return self.classify(bound)

        account = _SELF_FIELD.match(text)
        if account:
            return PdaSeedIR(kind=SeedKind.ACCOUNT_REF, name=account.group(1), type=address_type())

        argument = _INSTRUCTION_FIELD.match(text)
        if argument:
            struct, field_name = argument.groups()
            field_type = next((f.type for f in self.instruction_fields.get(struct, ()) if f.name == field_name), None)
            return PdaSeedIR(kind=SeedKind.ARG_REF, name=field_name, type=field_type)

        logger.warning("Unrecognized PDA seed expression `%s`, keeping it as an opaque literal", expression)
        return PdaSeedIR(kind=SeedKind.LITERAL, opaque=True, expression=expression)
