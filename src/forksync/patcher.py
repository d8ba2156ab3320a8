"""Idempotent insert-if-absent patching of line-oriented documents.

An :class:`InsertionRule` names a marker, an anchor pattern and the lines to
insert. :func:`apply` adds the lines directly after the first anchor match
unless the marker already appears somewhere in the document. Applying the
same rule again is always a no-op, so the transform can run on every sync.

The module is pure: it never touches disk and never mutates its input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from collections.abc import Sequence

from forksync.errors import AnchorNotFound, InvalidRuleError

__all__ = [
    "ApplyResult",
    "Document",
    "InsertionRule",
    "PatchOutcome",
    "apply",
    "find_anchor",
    "has_marker",
]

logger = logging.getLogger(__name__)

Document = list[str]


class ApplyResult(str, Enum):
    """Outcome of applying an insertion rule."""

    UNCHANGED = "unchanged"
    INSERTED = "inserted"


@dataclass(frozen=True)
class InsertionRule:
    """Marker, anchor pattern and the lines to place after the anchor."""

    marker: str
    anchor_pattern: str
    insert_lines: tuple[str, ...]
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.marker, str) or not self.marker:
            raise InvalidRuleError("Insertion rule marker must be a non-empty string")
        if isinstance(self.insert_lines, str):
            raise InvalidRuleError("Insertion rule lines must be a sequence of strings, not a string")
        lines = tuple(self.insert_lines)
        if not lines:
            raise InvalidRuleError("Insertion rule must insert at least one line")
        if not all(isinstance(line, str) for line in lines):
            raise InvalidRuleError("Insertion rule lines must all be strings")
        try:
            compiled = re.compile(self.anchor_pattern)
        except (re.error, TypeError) as exc:
            raise InvalidRuleError(f"Invalid anchor pattern {self.anchor_pattern!r}: {exc}") from exc
        object.__setattr__(self, "insert_lines", lines)
        object.__setattr__(self, "_compiled", compiled)

    def matches_anchor(self, line: str) -> bool:
        return self._compiled.search(line) is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "marker": self.marker,
            "anchor": self.anchor_pattern,
            "insert": list(self.insert_lines),
        }


@dataclass(frozen=True)
class PatchOutcome:
    """Resulting document plus what happened to it."""

    document: Document
    result: ApplyResult
    anchor_index: int | None = None

    @property
    def changed(self) -> bool:
        return self.result is ApplyResult.INSERTED


def has_marker(document: Sequence[str], marker: str) -> bool:
    """Return True when any line contains *marker* as a literal substring."""
    return any(marker in line for line in document)


def find_anchor(document: Sequence[str], rule: InsertionRule) -> int | None:
    """Return the index of the first line matching the rule's anchor."""
    for index, line in enumerate(document):
        if rule.matches_anchor(line):
            return index
    return None


def apply(document: Document, rule: InsertionRule) -> PatchOutcome:
    """Insert ``rule.insert_lines`` after the first anchor line, once.

    If the marker appears anywhere in *document*, the document is returned
    as-is with :attr:`ApplyResult.UNCHANGED`, even when the marker sits away
    from the anchor. Otherwise the lines go directly after the first line
    matching the anchor pattern and a new list is returned.

    Raises:
        AnchorNotFound: no marker and no line matches the anchor pattern.
    """
    if has_marker(document, rule.marker):
        logger.debug("Marker %r already present; nothing to insert", rule.marker)
        return PatchOutcome(document=document, result=ApplyResult.UNCHANGED)

    anchor_index = find_anchor(document, rule)
    if anchor_index is None:
        raise AnchorNotFound(rule.anchor_pattern)

    patched = list(document[: anchor_index + 1])
    patched.extend(rule.insert_lines)
    patched.extend(document[anchor_index + 1 :])
    logger.debug(
        "Inserted %d line(s) after anchor at line %d", len(rule.insert_lines), anchor_index + 1
    )
    return PatchOutcome(document=patched, result=ApplyResult.INSERTED, anchor_index=anchor_index)
