"""Capture extraction and match result value objects.

``extract_captures()`` is the only place raw ``regmatch_t`` pairs are
interpreted. Everything downstream sees Span objects (or None for groups
that did not participate) whose offsets are already bounds-checked.

Results copy offsets and never hold the subject or the Pattern. Slicing is
done on demand by passing the subject back in; the recorded subject length
is checked so a result cannot be applied to the wrong buffer by accident.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tre_regex._errors import InternalError
from tre_regex._native import UNSET_OFFSET
from tre_regex._types import to_bytes

if TYPE_CHECKING:
    from tre_regex._native import RegmatchT
    from tre_regex._types import Subject


@dataclass(frozen=True, slots=True)
class Span:
    """Byte offsets ``[start, end)`` of a capture within the subject."""

    start: int
    end: int


# None is the "unset" capture: the group did not take part in the match.
type Capture = Span | None


def extract_captures(pmatch: Iterable[RegmatchT], subject_length: int) -> tuple[Capture, ...]:
    """Convert native offset pairs into captures, preserving group order.

    Raises:
        InternalError: an offset pair is neither the unset sentinel nor
            within ``[0, subject_length]`` with start <= end.
    """
    captures: list[Capture] = []
    for index, entry in enumerate(pmatch):
        start, end = entry.rm_so, entry.rm_eo
        if start == UNSET_OFFSET and end == UNSET_OFFSET:
            captures.append(None)
            continue
        if not 0 <= start <= end <= subject_length:
            msg = (
                f"group {index} offsets ({start}, {end}) fall outside "
                f"a subject of length {subject_length}"
            )
            raise InternalError(msg)
        captures.append(Span(start, end))
    return tuple(captures)


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Captures of one successful match.

    ``captures[0]`` is the whole match; ``captures[1:]`` are the capturing
    groups in declaration order. Its length always equals the compiled
    pattern's group count.
    """

    captures: tuple[Capture, ...]
    subject_length: int

    def __len__(self) -> int:
        return len(self.captures)

    def span(self, index: int = 0) -> Capture:
        """Span of group ``index`` (0 is the whole match), or None if unset."""
        return self.captures[index]

    def group(self, index: int, subject: Subject) -> bytes | str | None:
        """Slice group ``index`` out of ``subject``.

        ``subject`` must be the value this result was produced from. Text
        subjects yield text (raising UnicodeDecodeError if a capture splits
        a UTF-8 sequence); byte subjects yield bytes.
        """
        data = self._subject_bytes(subject)
        return self._slice(data, self.captures[index], isinstance(subject, str))

    def groups(self, subject: Subject) -> tuple[bytes | str | None, ...]:
        """Slice every capture out of ``subject``, see ``group()``."""
        data = self._subject_bytes(subject)
        text = isinstance(subject, str)
        return tuple(self._slice(data, span, text) for span in self.captures)

    def _subject_bytes(self, subject: Subject) -> bytes:
        data = to_bytes(subject, "subject")
        if len(data) != self.subject_length:
            msg = (
                f"subject of {len(data)} bytes does not match the "
                f"{self.subject_length}-byte subject this result came from"
            )
            raise ValueError(msg)
        return data

    @staticmethod
    def _slice(data: bytes, span: Capture, text: bool) -> bytes | str | None:
        if span is None:
            return None
        chunk = data[span.start : span.end]
        return chunk.decode("utf-8") if text else chunk


@dataclass(frozen=True, slots=True)
class ApproximateMatchResult(MatchResult):
    """A MatchResult plus the edit cost the approximate matcher spent.

    All counts are non-negative and within the limits that were supplied.
    """

    cost: int
    insertions: int
    deletions: int
    substitutions: int

    @property
    def errors(self) -> int:
        """Total number of edits (insertions + deletions + substitutions)."""
        return self.insertions + self.deletions + self.substitutions
