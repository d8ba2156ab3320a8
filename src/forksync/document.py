"""Reading and writing patch targets on disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from forksync.errors import AnchorNotFound, DocumentDecodeError, DocumentIOError, DocumentNotFoundError
from forksync.patcher import ApplyResult, Document, InsertionRule, apply

__all__ = ["TextDocument", "FilePatchResult", "read_document", "write_document", "patch_file"]

logger = logging.getLogger(__name__)


@dataclass
class TextDocument:
    """Lines of a text file plus the terminator each line had on disk."""

    lines: Document
    endings: list[str] = field(default_factory=list)
    # endings[i] terminates lines[i]: "\n", "\r\n", or "" for a final line
    # without a newline. Missing entries render with ``line_ending``.

    @property
    def line_ending(self) -> str:
        if self.endings.count("\r\n") > self.endings.count("\n"):
            return "\r\n"
        return "\n"

    @property
    def trailing_newline(self) -> bool:
        return bool(self.endings) and self.endings[-1] != ""

    def _padded_endings(self) -> list[str]:
        missing = len(self.lines) - len(self.endings)
        return self.endings[: len(self.lines)] + [self.line_ending] * max(missing, 0)

    def render(self) -> str:
        return "".join(line + ending for line, ending in zip(self.lines, self._padded_endings()))

    def replace_with_insertion(self, lines: Document, anchor_index: int, count: int) -> None:
        """Take *lines*, which hold *count* new lines after *anchor_index*.

        Inserted lines reuse the anchor line's terminator. An anchor that was
        the unterminated last line gets the document's usual terminator, and
        the last inserted line then ends the file without one.
        """
        endings = self._padded_endings()
        anchor_ending = endings[anchor_index]
        if anchor_ending:
            new_endings = [anchor_ending] * count
        else:
            endings[anchor_index] = self.line_ending
            new_endings = [self.line_ending] * (count - 1) + [""]
        self.endings = endings[: anchor_index + 1] + new_endings + endings[anchor_index + 1 :]
        self.lines = lines


@dataclass
class FilePatchResult:
    """Result of patching a single file."""

    path: Path
    result: ApplyResult
    anchor_index: int | None = None
    written: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "result": self.result.value,
            "anchor_line": self.anchor_index + 1 if self.anchor_index is not None else None,
            "written": self.written,
        }


def _split_lines(content: str) -> tuple[list[str], list[str]]:
    # Only \n and \r\n end a line; str.splitlines would also break on form
    # feeds, lone \r and other separators.
    lines: list[str] = []
    endings: list[str] = []
    pieces = content.split("\n")
    for piece in pieces[:-1]:
        if piece.endswith("\r"):
            lines.append(piece[:-1])
            endings.append("\r\n")
        else:
            lines.append(piece)
            endings.append("\n")
    if pieces[-1]:
        lines.append(pieces[-1])
        endings.append("")
    return lines, endings


def read_document(path: Path) -> TextDocument:
    """Load *path* as UTF-8 and split it into lines."""
    if not path.is_file():
        raise DocumentNotFoundError(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DocumentIOError(path, "read", exc) from exc
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DocumentDecodeError(path, exc) from exc
    lines, endings = _split_lines(content)
    return TextDocument(lines=lines, endings=endings)


def write_document(path: Path, document: TextDocument) -> None:
    try:
        path.write_bytes(document.render().encode("utf-8"))
    except OSError as exc:
        raise DocumentIOError(path, "write", exc) from exc


def patch_file(path: Path, rule: InsertionRule, *, dry_run: bool = False) -> FilePatchResult:
    """Apply *rule* to the file at *path*, rewriting it only when lines were inserted.

    Args:
        path: File to patch in place
        rule: Insertion rule to apply
        dry_run: Compute the result without writing

    Returns:
        FilePatchResult describing what happened

    Raises:
        DocumentNotFoundError: If *path* does not exist
        DocumentDecodeError: If *path* is not valid UTF-8
        DocumentIOError: If *path* cannot be read or written
        AnchorNotFound: If the file lacks both the marker and an anchor line
    """
    document = read_document(path)
    try:
        outcome = apply(document.lines, rule)
    except AnchorNotFound as exc:
        raise AnchorNotFound(exc.anchor_pattern, source=str(path)) from exc

    result = FilePatchResult(path=path, result=outcome.result, anchor_index=outcome.anchor_index)
    if not outcome.changed:
        logger.info("%s already contains %r; leaving it untouched", path, rule.marker)
        return result

    if dry_run:
        logger.info("Dry run: would insert %d line(s) into %s", len(rule.insert_lines), path)
        return result

    document.replace_with_insertion(outcome.document, outcome.anchor_index, len(rule.insert_lines))
    write_document(path, document)
    result.written = True
    logger.info("Inserted %d line(s) into %s", len(rule.insert_lines), path)
    return result
