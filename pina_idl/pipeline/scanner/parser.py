"""
Rust source parser.

Thin wrapper around tree-sitter and tree-sitter-rust: parses a file, turns a
tree with syntax errors into a SyntaxFailure, and gives byte-accurate access
to node text.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import tree_sitter_rust as ts_rust
from tree_sitter import Language, Node, Parser, Tree

from ...errors import SyntaxFailure
from ...utils import normalize_whitespace


class RustSource:
    """A parsed Rust file: the tree plus the source bytes its offsets refer to."""

    def __init__(self, path: str | Path, code: bytes, tree: Tree):
        self.path = str(path)
        self.code = code
        self.tree = tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node | None) -> str:
        """Get the source text for a node."""
        if node is None:
            return ""
        return self.code[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def compact_text(self, node: Node | None) -> str:
        """Node text with whitespace collapsed, and removed around `.`, `?` and `::`."""
        return compact(self.text(node))


def compact(text: str) -> str:
    text = normalize_whitespace(text)
    for token in ("::", ".", "?"):
        text = text.replace(f" {token}", token).replace(f"{token} ", token)
    return text


def line_of(node: Node) -> int:
    """1-based line number of a node."""
    return node.start_point[0] + 1


def iter_nodes(node: Node, node_type: str) -> Iterator[Node]:
    """Yield all nodes of a given type in the subtree, in source order."""
    if node.type == node_type:
        yield node
    for child in node.children:
        yield from iter_nodes(child, node_type)


class RustParser:
    """Parses Rust source files with tree-sitter."""

    def __init__(self):
        self._parser = Parser(Language(ts_rust.language()))

    def parse(self, code: str, path: str | Path = "<memory>") -> RustSource:
        """
        Parse Rust source code.

        Args:
            code: Rust source text
            path: File path, used in error messages

        Returns:
            RustSource holding the tree

        Raises:
            SyntaxFailure: If the source contains syntax errors
        """
        data = bytes(code, "utf8")
        tree = self._parser.parse(data)
        source = RustSource(path, data, tree)

        if tree.root_node.has_error:
            error = self._first_error(tree.root_node)
            if error is None:
                raise SyntaxFailure(path)
            snippet = normalize_whitespace(source.text(error))[:50]
            raise SyntaxFailure(path, line=line_of(error), snippet=snippet)

        return source

    def _first_error(self, node: Node) -> Node | None:
        """Find the first ERROR or missing node in the tree."""
        if node.type == "ERROR" or node.is_missing:
            return node
        for child in node.children:
            if child.has_error or child.is_missing:
                found = self._first_error(child)
                if found is not None:
                    return found
        return None
