"""
Writer module.

Serializes the schema node tree to JSON and writes it to disk atomically.
"""

from __future__ import annotations

from .atomic_writer import AtomicWriter
from .serializer import serialize

__all__ = [
    "AtomicWriter",
    "serialize",
]
