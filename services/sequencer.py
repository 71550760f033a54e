"""Sequence arithmetic for the image carousel.

Every image carries a `sequence` value, and together they form the dense
range `0..N-1`. The functions here never touch the database: they validate
requested changes and describe the range updates that keep the range dense.
`dal.image_dal.ImageDAL` applies those plans inside one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from utils.errors import ImageValidationError


@dataclass(frozen=True)
class SequenceShift:
    """Add `delta` to every other record whose sequence is in `[lower, upper]`.

    `upper=None` leaves the window open-ended.
    """

    lower: int
    upper: Optional[int]
    delta: int


def append(count: int) -> int:
    """Return the sequence for a record appended to a set of `count` records."""
    if count < 0:
        raise ValueError("count must be non-negative")
    return count


def plan_move(current: int, target: int, count: int) -> Optional[SequenceShift]:
    """Plan moving one record from `current` to `target` in a set of `count`.

    Records between the old and new positions shift by one towards the slot
    being vacated; the moved record is then written at `target`.

    Returns:
        The shift for the other records, or None when `target == current`.

    Raises:
        ImageValidationError: If either position lies outside `[0, count - 1]`.
    """
    if not 0 <= target < count:
        raise ImageValidationError(
            f"Sequence {target} is out of range; expected a value between 0 and {count - 1}"
        )
    if not 0 <= current < count:
        raise ImageValidationError(f"Stored sequence {current} is out of range for {count} images")

    if target == current:
        return None
    if target > current:
        return SequenceShift(lower=current + 1, upper=target, delta=-1)
    return SequenceShift(lower=target, upper=current - 1, delta=1)


def plan_gap_closure(deleted_sequence: int) -> SequenceShift:
    """Plan renumbering the records that followed a deleted one."""
    return SequenceShift(lower=deleted_sequence + 1, upper=None, delta=-1)


def validate_reassignment(
    known_ids: Iterable[int], pairs: Sequence[Tuple[int, int]]
) -> Dict[int, int]:
    """Check that `pairs` is a full reordering of the known records.

    Args:
        known_ids: Ids of every stored record.
        pairs: `(id, sequence)` pairs submitted by the client.

    Returns:
        Mapping of id to its new sequence.

    Raises:
        ImageValidationError: If an id is repeated, unknown or missing, or the
            sequences are not exactly `0..N-1`.
    """
    known = set(known_ids)
    assignment: Dict[int, int] = {}
    for image_id, sequence in pairs:
        if image_id in assignment:
            raise ImageValidationError(f"Image {image_id} appears more than once")
        assignment[image_id] = sequence

    unknown = sorted(set(assignment) - known)
    if unknown:
        raise ImageValidationError(f"Unknown image ids: {unknown}")
    missing = sorted(known - set(assignment))
    if missing:
        raise ImageValidationError(f"Reorder must include every image; missing ids: {missing}")
    if not is_dense(assignment.values()):
        raise ImageValidationError(
            f"Sequences must be a permutation of 0..{len(known) - 1}"
        )
    return assignment


def is_dense(sequences: Iterable[int]) -> bool:
    """Return True if `sequences` holds each of `0..N-1` exactly once."""
    values = list(sequences)
    return sorted(values) == list(range(len(values)))
