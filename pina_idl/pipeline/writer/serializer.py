"""
JSON serializer for the schema node tree.
"""

from __future__ import annotations

import json

from ...errors import SerializationFailure
from ..emitter.nodes import RootNode

INDENT = 2


def serialize(root: RootNode, pretty: bool = True) -> str:
    """
    Serialize the schema to JSON text with a trailing newline.

    Args:
        root: The emitted node tree
        pretty: Indent the output; otherwise use compact separators

    Raises:
        SerializationFailure: If the tree holds values JSON cannot represent
    """
    try:
        if pretty:
            text = json.dumps(root.to_dict(), indent=INDENT, ensure_ascii=False)
        else:
            text = json.dumps(root.to_dict(), separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationFailure(f"Failed to serialize schema: {e}") from e
    return text + "\n"
