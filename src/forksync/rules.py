"""Built-in insertion rules and rule construction from configuration."""

from __future__ import annotations

from collections.abc import Mapping

from forksync.errors import InvalidRuleError
from forksync.patcher import InsertionRule

__all__ = [
    "VW_VERSION_MARKER",
    "VW_VERSION_ANCHOR",
    "VW_VERSION_LINES",
    "VW_VERSION_RULE",
    "rule_from_mapping",
]

VW_VERSION_MARKER = "ARG VW_VERSION"
VW_VERSION_ANCHOR = r"^FROM .*docker.io/library/rust:.* AS build"
VW_VERSION_LINES = (
    "ARG VW_VERSION",
    'ENV VW_VERSION=${VW_VERSION:-"UNKNOWN_VERSION"}',
)

# Exposes the version build arg inside the Rust build stage of the Dockerfile.
VW_VERSION_RULE = InsertionRule(
    marker=VW_VERSION_MARKER,
    anchor_pattern=VW_VERSION_ANCHOR,
    insert_lines=VW_VERSION_LINES,
)


def rule_from_mapping(
    data: Mapping[str, object] | None,
    default: InsertionRule = VW_VERSION_RULE,
) -> InsertionRule:
    """Build a rule from ``marker``/``anchor``/``insert`` keys.

    Keys that are absent fall back to *default*.
    """
    if data is None:
        return default
    if not isinstance(data, Mapping):
        raise InvalidRuleError("Patch rule must be a mapping")

    marker = data.get("marker", default.marker)
    anchor = data.get("anchor", default.anchor_pattern)
    insert = data.get("insert", default.insert_lines)

    if not isinstance(marker, str):
        raise InvalidRuleError("Patch rule 'marker' must be a string")
    if not isinstance(anchor, str):
        raise InvalidRuleError("Patch rule 'anchor' must be a string")
    if isinstance(insert, str):
        insert = [insert]
    if not isinstance(insert, (list, tuple)):
        raise InvalidRuleError("Patch rule 'insert' must be a list of lines")

    return InsertionRule(
        marker=marker,
        anchor_pattern=anchor,
        insert_lines=tuple(insert),
    )
