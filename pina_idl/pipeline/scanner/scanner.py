"""
Declaration scanner.

Phase 1 of the pipeline: walk the syntax tree of one Rust file (and every
inline module inside it) and classify items into declaration kinds. Items
that match no kind are skipped, so unrelated code never causes a failure.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path

from tree_sitter import Node

from ...errors import IoFailure, UnsupportedType
from ...utils import split_top_level, strip_delimiters
from .docs import (
    extract_docs,
    extract_program_id,
    find_attribute,
    has_derive,
    parse_int_literal,
    resolve_variant_values,
)
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
from .parser import RustParser, RustSource, iter_nodes, line_of

logger = logging.getLogger(__name__)

# Sibling nodes that attach to the item following them
METADATA_NODES = {"attribute_item", "line_comment", "block_comment"}

# Struct attributes marking a discriminated layout
TAGGED_STRUCTS = {
    "account": DeclarationKind.ACCOUNT,
    "instruction": DeclarationKind.INSTRUCTION,
    "event": DeclarationKind.EVENT,
}

# Helpers whose first argument is a PDA seed array
PDA_FUNCTIONS = {
    "find_program_address",
    "try_find_program_address",
    "create_program_address",
    "assert_seeds",
    "assert_seeds_with_bump",
    "assert_canonical_bump",
}

PROCESSOR_TRAIT = "ProcessAccountInfos"
DISPATCH_FUNCTION = "process_instruction"

# Maximum chain of `let` bindings followed when substituting a local
MAX_BINDING_DEPTH = 8

_MACRO_PARAM = re.compile(r"\$(\w+)\s*:")
_LEADING_IDENT = re.compile(r"^(&\s*(?:mut\s+)?)?([A-Za-z_]\w*)(?![\w!(]|::)")
_SELF_FIELD = re.compile(r"^&?\s*self\.(\w+)")
_TRY_FROM = re.compile(r"(\w+)(?:<[^>]*>)?::try_from\s*\(")
_TYPE_NAME = re.compile(r"^[\w:]+")

Handler = Callable[[Node, RustSource, list[str], list[Declaration]], None]


class _Bindings:
    """Local `let` bindings of one function body, used to substitute names in expressions."""

    def __init__(self, body: Node, source: RustSource):
        self._lets: list[tuple[int, str, str]] = []
        for let in iter_nodes(body, "let_declaration"):
            pattern = let.child_by_field_name("pattern")
            value = let.child_by_field_name("value")
            if pattern is None or value is None or pattern.type != "identifier":
                continue
            name = source.text(pattern)
            if name != "_":
                self._lets.append((let.end_byte, name, source.compact_text(value)))

    def resolve(self, text: str, position: int) -> str:
        """Replace a leading local name with its bound expression, repeatedly."""
        for _ in range(MAX_BINDING_DEPTH):
            match = _LEADING_IDENT.match(text)
            if not match:
                break
            bound = self._lookup(match.group(2), position)
            if bound is None:
                break
            text = (match.group(1) or "") + bound + text[match.end() :]
        return text

    def _lookup(self, name: str, position: int) -> str | None:
        found = None
        for end, let_name, value in self._lets:
            if end <= position and let_name == name:
                found = value
        return found


class DeclarationScanner:
    """Scans Rust source files into declarations."""

    def __init__(self, parser: RustParser | None = None):
        self._parser = parser or RustParser()
        self._module_depth = 0
        self._handlers: dict[str, Handler] = {
            "struct_item": self._scan_struct,
            "enum_item": self._scan_enum,
            "const_item": self._scan_const,
            "macro_invocation": self._scan_macro_invocation,
            "expression_statement": self._scan_expression_statement,
            "macro_definition": self._scan_macro_definition,
            "mod_item": self._scan_module,
            "function_item": self._scan_function,
            "impl_item": self._scan_impl,
        }

    def scan_file(self, path: str | Path) -> ScanResult:
        """Read and scan one source file."""
        path = Path(path)
        try:
            code = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise IoFailure(path, e) from e
        return self.scan(code, path)

    def scan(self, code: str, path: str | Path = "<memory>") -> ScanResult:
        """
        Scan Rust source code.

        Args:
            code: Rust source text
            path: File path recorded on each declaration

        Returns:
            ScanResult with declarations in source order

        Raises:
            SyntaxFailure: If the source does not parse
            UnsupportedType: If an account, instruction or event struct has a tuple body
        """
        source = self._parser.parse(code, path)
        self._module_depth = 0
        declarations: list[Declaration] = []
        self._walk_items(source.root, source, declarations)
        logger.debug("Scanned %s: %d declarations", path, len(declarations))
        return ScanResult(path=str(path), declarations=declarations)

    def _walk_items(self, node: Node, source: RustSource, out: list[Declaration]) -> None:
        pending: list[str] = []
        for child in node.children:
            if child.type in METADATA_NODES:
                pending.append(source.text(child))
                continue
            if not child.is_named or child.type == "inner_attribute_item":
                continue
            handler = self._handlers.get(child.type, self._skip)
            handler(child, source, pending, out)
            pending = []

    def _skip(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        pass

    def _location(self, node: Node, source: RustSource) -> dict:
        return {"source_path": source.path, "line": line_of(node)}

    # Items

    def _scan_struct(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        name = source.text(node.child_by_field_name("name"))
        body = node.child_by_field_name("body")
        named = body is not None and body.type == "field_declaration_list"
        fields = self._scan_fields(body, source) if named else []
        docs = extract_docs(metadata)

        for tag, kind in TAGGED_STRUCTS.items():
            meta = find_attribute(metadata, tag)
            if meta is not None:
                # A tuple body has no field names to lay out
                if body is not None and body.type == "ordered_field_declaration_list":
                    raise UnsupportedType(name, "<tuple struct>", f"{source.path}:{line_of(node)}")
                out.append(
                    TaggedStructDecl(
                        kind=kind,
                        name=name,
                        docs=docs,
                        discriminator_enum=meta.args.get("discriminator"),
                        variant=meta.args.get("variant"),
                        fields=fields,
                        **self._location(node, source),
                    )
                )
                return

        if has_derive(metadata, "Accounts"):
            decl = AccountsStructDecl(kind=DeclarationKind.ACCOUNTS_STRUCT, name=name, docs=docs, fields=fields, **self._location(node, source))
            out.append(decl)
        elif named:
            out.append(StructDecl(kind=DeclarationKind.STRUCT, name=name, docs=docs, fields=fields, **self._location(node, source)))

    def _scan_fields(self, body: Node, source: RustSource) -> list[FieldDecl]:
        fields = []
        pending: list[str] = []
        for child in body.children:
            if child.type in METADATA_NODES:
                pending.append(source.text(child))
            elif child.type == "field_declaration":
                fields.append(
                    FieldDecl(
                        name=source.text(child.child_by_field_name("name")),
                        type_token=source.compact_text(child.child_by_field_name("type")),
                        docs=extract_docs(pending),
                    )
                )
                pending = []
        return fields

    def _scan_enum(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        discriminator = find_attribute(metadata, "discriminator")
        error = find_attribute(metadata, "error")
        if discriminator is None and error is None:
            return

        name = source.text(node.child_by_field_name("name"))
        variants = self._scan_variants(node.child_by_field_name("body"), source)
        docs = extract_docs(metadata)
        location = self._location(node, source)

        if discriminator is not None:
            repr_attr = find_attribute(metadata, "repr")
            out.append(
                DiscriminatorDecl(
                    kind=DeclarationKind.DISCRIMINATOR,
                    name=name,
                    docs=docs,
                    primitive=discriminator.args.get("primitive"),
                    repr=repr_attr.arguments if repr_attr is not None else None,
                    is_final=discriminator.has_flag("final"),
                    variants=variants,
                    **location,
                )
            )
        else:
            out.append(ErrorEnumDecl(kind=DeclarationKind.ERROR, name=name, docs=docs, is_final=error.has_flag("final"), variants=variants, **location))

    def _scan_variants(self, body: Node | None, source: RustSource) -> list[VariantDecl]:
        if body is None:
            return []
        variants = []
        pending: list[str] = []
        for child in body.children:
            if child.type in METADATA_NODES:
                pending.append(source.text(child))
            elif child.type == "enum_variant":
                value = child.child_by_field_name("value")
                variants.append(
                    VariantDecl(
                        name=source.text(child.child_by_field_name("name")),
                        explicit_value=parse_int_literal(source.text(value)) if value is not None else None,
                        docs=extract_docs(pending),
                    )
                )
                pending = []

        for variant, value in zip(variants, resolve_variant_values(v.explicit_value for v in variants)):
            variant.value = value
        return variants

    def _scan_const(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        out.append(
            ConstantDecl(
                kind=DeclarationKind.CONSTANT,
                name=source.text(node.child_by_field_name("name")),
                docs=extract_docs(metadata),
                type_token=source.compact_text(node.child_by_field_name("type")),
                value_text=source.compact_text(node.child_by_field_name("value")),
                **self._location(node, source),
            )
        )

    def _scan_macro_invocation(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        macro = source.text(node.child_by_field_name("macro"))
        if macro.rsplit("::", 1)[-1] != "declare_id":
            return
        arguments = source.text(node.named_children[-1]) if node.named_children else ""
        out.append(
            ProgramIdDecl(
                kind=DeclarationKind.PROGRAM_ID,
                name="declare_id",
                address=extract_program_id(arguments) or "",
                module_depth=self._module_depth,
                **self._location(node, source),
            )
        )

    def _scan_expression_statement(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        for child in node.named_children:
            if child.type == "macro_invocation":
                self._scan_macro_invocation(child, source, metadata, out)

    def _scan_macro_definition(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        name = source.text(node.child_by_field_name("name"))
        if "seeds" not in name:
            return

        best: tuple[list[str], list[str]] | None = None
        for rule in node.named_children:
            if rule.type != "macro_rule":
                continue
            params = _MACRO_PARAM.findall(source.text(rule.child_by_field_name("left")))
            seeds = seed_array_elements(source.compact_text(rule.child_by_field_name("right")))
            if seeds is None:
                continue
            if best is None or len(params) < len(best[0]):
                best = (params, seeds)

        if best is None:
            logger.debug("Seed macro %s has no arm returning a seed array", name)
            return
        out.append(
            SeedMacroDecl(
                kind=DeclarationKind.SEED_MACRO,
                name=name,
                docs=extract_docs(metadata),
                params=best[0],
                seeds=best[1],
                **self._location(node, source),
            )
        )

    def _scan_module(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return
        self._module_depth += 1
        try:
            self._walk_items(body, source, out)
        finally:
            self._module_depth -= 1

    def _scan_function(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return
        self._scan_body(body, source, out)
        if source.text(node.child_by_field_name("name")) == DISPATCH_FUNCTION:
            self._scan_dispatch(body, source, out)

    def _scan_impl(self, node: Node, source: RustSource, metadata: list[str], out: list[Declaration]) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return

        processor = None
        if type_name(source.text(node.child_by_field_name("trait"))) == PROCESSOR_TRAIT:
            processor = ProcessorDecl(
                kind=DeclarationKind.PROCESSOR,
                name=type_name(source.text(node.child_by_field_name("type"))),
                **self._location(node, source),
            )
            out.append(processor)

        for function in body.named_children:
            if function.type != "function_item":
                continue
            function_body = function.child_by_field_name("body")
            if function_body is not None:
                self._scan_body(function_body, source, out, processor)

    # Function bodies

    def _scan_body(self, body: Node, source: RustSource, out: list[Declaration], processor: ProcessorDecl | None = None) -> None:
        bindings = _Bindings(body, source)

        for invocation in iter_nodes(body, "macro_invocation"):
            macro = source.text(invocation.child_by_field_name("macro")).rsplit("::", 1)[-1]
            if "seeds" not in macro or not invocation.named_children:
                continue
            arguments = split_top_level(strip_delimiters(source.compact_text(invocation.named_children[-1])))
            out.append(
                SeedInvocationDecl(
                    kind=DeclarationKind.SEED_INVOCATION,
                    name=macro,
                    arguments=[bindings.resolve(argument, invocation.start_byte) for argument in arguments],
                    **self._location(invocation, source),
                )
            )

        for call in iter_nodes(body, "call_expression"):
            function = call.child_by_field_name("function")
            argument_list = call.child_by_field_name("arguments")
            if function is None or argument_list is None:
                continue
            arguments = [arg for arg in argument_list.named_children if arg.type not in METADATA_NODES]
            method = self._callee_name(function, source)

            if method in PDA_FUNCTIONS and arguments:
                first = bindings.resolve(source.compact_text(arguments[0]), call.start_byte)
                seeds = seed_array_elements(first) if first.lstrip("&").lstrip().startswith("[") else None
                if seeds is not None:
                    seeds = [bindings.resolve(seed, call.start_byte) for seed in seeds]
                    out.append(PdaCallDecl(kind=DeclarationKind.PDA_CALL, name=method, seeds=seeds, **self._location(call, source)))

            if processor is not None and method.startswith("assert_") and function.type == "field_expression":
                receiver = bindings.resolve(source.compact_text(function.child_by_field_name("value")), call.start_byte)
                match = _SELF_FIELD.match(receiver)
                if match:
                    processor.assertions.append(
                        AssertionDecl(
                            field_name=match.group(1),
                            method=method,
                            arguments=[bindings.resolve(source.compact_text(arg), call.start_byte) for arg in arguments],
                        )
                    )

    def _callee_name(self, function: Node, source: RustSource) -> str:
        if function.type == "field_expression":
            return source.text(function.child_by_field_name("field"))
        return type_name(source.text(function))

    def _scan_dispatch(self, body: Node, source: RustSource, out: list[Declaration]) -> None:
        for arm in iter_nodes(body, "match_arm"):
            pattern = source.compact_text(arm.child_by_field_name("pattern"))
            value = source.compact_text(arm.child_by_field_name("value"))
            segments = pattern.split("::")
            target = _TRY_FROM.search(value)
            if len(segments) < 2 or not target or not all(s.isidentifier() for s in segments):
                continue
            out.append(
                DispatchDecl(
                    kind=DeclarationKind.DISPATCH,
                    name=segments[-1],
                    enum_name=segments[-2],
                    variant=segments[-1],
                    accounts_struct=target.group(1),
                    **self._location(arm, source),
                )
            )


def type_name(text: str) -> str:
    """Last path segment of a type, generics removed: `pina::Foo<'a>` -> `Foo`."""
    match = _TYPE_NAME.match(text.strip())
    return match.group(0).rsplit("::", 1)[-1] if match else ""


def seed_array_elements(text: str) -> list[str] | None:
    """
    Return the elements of the first `[...]` seed array in the text.

    Bump elements (`&[bump]`) are dropped. Returns None when there is no array.
    """
    start = text.find("[")
    if start < 0:
        return None
    depth = 0
    for index in range(start, len(text)):
        if text[index] == "[":
            depth += 1
        elif text[index] == "]":
            depth -= 1
            if depth == 0:
                elements = split_top_level(text[start + 1 : index])
                return [e for e in elements if not e.lstrip("&").lstrip().startswith("[")]
    return None
