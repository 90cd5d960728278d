"""
Authoritative segment timeline for ChatCut.

The store owns the ordered list of segments covering [0, duration). Every
mutation builds a complete new tuple and swaps it in with one assignment,
so the playback controller always reads a consistent snapshot.
"""

import math
from bisect import bisect_right
from dataclasses import replace
from typing import Iterable, Iterator, List, Optional, Tuple

from ..config import BOUNDARY_EPSILON, INITIAL_SEGMENT_DESCRIPTION, INITIAL_SEGMENT_ID
from ..errors import MediaUnavailableError, OutOfRangeError, ValidationError
from ..models import Segment, new_segment_id
from ..utils import clamp
from ..utils.logging_utils import DualLogger, get_log_helper

FILLER_DESCRIPTION = "Trimmed"


def drop_empty_segments(segments: List[Segment], eps: float = BOUNDARY_EPSILON) -> List[Segment]:
    """
    Remove zero-length segments from a contiguous sequence.

    Whatever sliver an empty segment spanned (at most eps) is absorbed by
    its predecessor, or by its successor when it was first. At least one
    segment is always kept.
    """
    kept: List[Segment] = []
    carry_start: Optional[float] = None
    for seg in segments:
        if seg.end - seg.start <= eps:
            if kept:
                if kept[-1].end != seg.end:
                    kept[-1] = replace(kept[-1], end=seg.end)
            elif carry_start is None:
                carry_start = seg.start
            continue
        if carry_start is not None:
            seg = replace(seg, start=carry_start)
            carry_start = None
        kept.append(seg)
    if not kept and segments:
        kept.append(segments[0])
    return kept


class SegmentStore:
    """Ordered, gap-free collection of active/inactive segments."""

    def __init__(
        self,
        duration: float = 0.0,
        segments: Optional[Iterable[Segment]] = None,
        logger: Optional[DualLogger] = None,
        verbose: bool = False
    ):
        """
        Initialize the store.

        Args:
            duration: Media duration in seconds (0 means no media yet)
            segments: Optional initial segments; validated like replace_all
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.log = get_log_helper(logger, verbose)
        self._duration = 0.0
        self._segments: Tuple[Segment, ...] = ()
        if segments is not None:
            self.load(duration, segments)
        elif duration > 0:
            self.initialize(duration)

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------
    @property
    def duration(self) -> float:
        return self._duration

    @property
    def segments(self) -> Tuple[Segment, ...]:
        """Current snapshot; callers never see a partially applied update."""
        return self._segments

    @property
    def is_empty(self) -> bool:
        return not self._segments

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def get(self, segment_id: str) -> Segment:
        return self._segments[self._index_of(segment_id)]

    def to_dicts(self) -> List[dict]:
        return [seg.to_dict() for seg in self._segments]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def initialize(self, duration: float, description: str = INITIAL_SEGMENT_DESCRIPTION) -> None:
        """Start a fresh timeline: one active segment spanning the whole media."""
        if duration is None or not math.isfinite(duration) or duration <= 0:
            raise MediaUnavailableError(f"Cannot build a timeline for media of duration {duration!r}")
        self._duration = float(duration)
        self._segments = (Segment(INITIAL_SEGMENT_ID, 0.0, self._duration, description, True),)
        self.log.info(f"[TIMELINE] Initialized full timeline (0.00s - {self._duration:.2f}s)")

    def load(self, duration: float, segments: Iterable[Segment]) -> Tuple[Segment, ...]:
        """
        Restore a saved timeline for media of the given duration.

        Raises:
            ValidationError: The saved segments do not form a valid timeline;
                the store is left as it was
        """
        if duration is None or not math.isfinite(duration) or duration <= 0:
            raise MediaUnavailableError(f"Cannot build a timeline for media of duration {duration!r}")
        candidate = self._validated(list(segments), duration)
        self._duration = float(duration)
        self._segments = tuple(drop_empty_segments(candidate))
        self.log.info(f"[TIMELINE] Loaded {len(self._segments)} segment(s)")
        return self._segments

    def clear(self) -> None:
        """Discard the timeline (project reset or switch)."""
        self._duration = 0.0
        self._segments = ()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def replace_all(self, new_segments: Iterable[Segment]) -> Tuple[Segment, ...]:
        """
        Replace the whole timeline atomically.

        The candidate is sorted by start and checked for coverage, overlap,
        bounds and unique ids. Boundaries that disagree by less than
        BOUNDARY_EPSILON are snapped together; zero-length segments are
        dropped. An already valid, sorted, exact list is stored as is.

        Args:
            new_segments: Replacement segments in any order

        Returns:
            The stored snapshot

        Raises:
            ValidationError: The candidate breaks a rule; nothing is applied
        """
        candidate = self._validated(list(new_segments))
        self._segments = tuple(drop_empty_segments(candidate))
        self.log.info(f"[TIMELINE] Replaced timeline with {len(self._segments)} segment(s)")
        return self._segments

    def update_one(
        self,
        segment_id: str,
        new_start: Optional[float] = None,
        new_end: Optional[float] = None
    ) -> Segment:
        """
        Move one or both endpoints of a segment, keeping the timeline gap-free.

        Values are clamped to [0, duration]. If the moved endpoint crosses
        the other one the two are swapped. A moved boundary stops at the
        adjacent segment's far edge, so that neighbor can shrink to zero
        length but never invert. The neighbor sharing each moved boundary is
        resized to meet it; when the outer edge of the first or last segment
        moves inward, an inactive filler segment covers the exposed span.

        Args:
            segment_id: Id of the segment to change
            new_start: New start time, or None to keep
            new_end: New end time, or None to keep

        Returns:
            The updated segment

        Raises:
            KeyError: Unknown segment id
        """
        segments = list(self._segments)
        index = self._index_of(segment_id)
        seg = segments[index]
        duration = self._duration

        start = seg.start if new_start is None else clamp(float(new_start), 0.0, duration)
        end = seg.end if new_end is None else clamp(float(new_end), 0.0, duration)
        if start > end:
            start, end = end, start

        has_prev = index > 0
        has_next = index < len(segments) - 1
        low = segments[index - 1].start if has_prev else 0.0
        high = segments[index + 1].end if has_next else duration
        start = clamp(start, low, high)
        end = clamp(end, low, high)

        updated = replace(seg, start=start, end=end)
        segments[index] = updated

        if has_prev:
            prev = segments[index - 1]
            if prev.end != start:
                segments[index - 1] = replace(prev, end=start)
        elif start > 0.0:
            segments.insert(0, self._filler(0.0, start))
            index += 1

        if has_next:
            nxt = segments[index + 1]
            if nxt.start != end:
                segments[index + 1] = replace(nxt, start=end)
        elif end < duration:
            segments.append(self._filler(end, duration))

        self._segments = tuple(segments)
        self.log.debug(f"[TIMELINE] {segment_id} -> {start:.3f}s - {end:.3f}s")
        return updated

    def set_active(self, segment_id: str, active: bool) -> Segment:
        """Keep or cut a single segment."""
        segments = list(self._segments)
        index = self._index_of(segment_id)
        updated = replace(segments[index], active=active)
        segments[index] = updated
        self._segments = tuple(segments)
        self.log.info(f"[TIMELINE] {segment_id} {'kept' if active else 'cut'}")
        return updated

    def toggle(self, segment_id: str) -> Segment:
        return self.set_active(segment_id, not self.get(segment_id).active)

    def normalize(self) -> int:
        """
        Drop zero-length segments left behind by a drag.

        Returns:
            Number of segments removed
        """
        before = len(self._segments)
        self._segments = tuple(drop_empty_segments(list(self._segments)))
        removed = before - len(self._segments)
        if removed:
            self.log.debug(f"[TIMELINE] Normalized away {removed} empty segment(s)")
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def query(self, time: float) -> Segment:
        """
        Return the segment whose [start, end) contains time.

        Raises:
            OutOfRangeError: time is outside [0, duration) or there is no timeline
        """
        if self.is_empty or not (0.0 <= time < self._duration):
            raise OutOfRangeError(time, self._duration)
        segments = self._segments
        index = bisect_right([seg.start for seg in segments], time) - 1
        while index >= 0 and not segments[index].contains(time):
            index -= 1
        if index < 0:
            raise OutOfRangeError(time, self._duration)
        return segments[index]

    def active_at(self, time: float) -> Optional[Segment]:
        """Active segment containing time, or None (cut material, gap or out of range)."""
        try:
            seg = self.query(time)
        except OutOfRangeError:
            return None
        return seg if seg.active else None

    def next_active_after(self, time: float) -> Optional[Segment]:
        """First non-empty active segment starting strictly after time."""
        segments = self._segments
        index = bisect_right([seg.start for seg in segments], time)
        for seg in segments[index:]:
            if seg.active and seg.end > seg.start:
                return seg
        return None

    def first_active(self) -> Optional[Segment]:
        for seg in self._segments:
            if seg.active and seg.end > seg.start:
                return seg
        return None

    def active_intervals(self) -> List[Tuple[float, float]]:
        """Ordered (start, end) of kept material, recomputed from the current snapshot."""
        return [(seg.start, seg.end) for seg in self._segments if seg.active and seg.end > seg.start]

    def active_segments(self) -> List[Segment]:
        return [seg for seg in self._segments if seg.active and seg.end > seg.start]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _index_of(self, segment_id: str) -> int:
        for index, seg in enumerate(self._segments):
            if seg.id == segment_id:
                return index
        raise KeyError(segment_id)

    @staticmethod
    def _filler(start: float, end: float) -> Segment:
        return Segment(new_segment_id(), start, end, FILLER_DESCRIPTION, False)

    def _validated(self, segments: List[Segment], duration: Optional[float] = None) -> List[Segment]:
        duration = self._duration if duration is None else float(duration)
        eps = BOUNDARY_EPSILON

        if not math.isfinite(duration) or duration <= 0:
            raise ValidationError("No media duration is known yet", rule="bounds")
        if not segments:
            raise ValidationError("Timeline must contain at least one segment", rule="coverage")
        for seg in segments:
            if not isinstance(seg, Segment):
                raise ValidationError(f"Expected Segment, got {type(seg).__name__}")
            if not (math.isfinite(seg.start) and math.isfinite(seg.end)):
                raise ValidationError(f"Segment {seg.id} has a non-finite boundary", rule="bounds")

        ids = [seg.id for seg in segments]
        if len(set(ids)) != len(ids):
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            raise ValidationError(f"Duplicate segment ids: {', '.join(duplicates)}", rule="identity")

        ordered = sorted(segments, key=lambda s: (s.start, s.end))
        result: List[Segment] = []
        expected_start = 0.0
        for seg in ordered:
            if seg.start < -eps or seg.end > duration + eps:
                raise ValidationError(
                    f"Segment {seg.id} ({seg.start:.3f}s - {seg.end:.3f}s) lies outside "
                    f"[0, {duration:.3f}]",
                    rule="bounds"
                )
            if seg.end < seg.start - eps:
                raise ValidationError(
                    f"Segment {seg.id} ends at {seg.end:.3f}s before it starts at {seg.start:.3f}s",
                    rule="bounds"
                )
            offset = seg.start - expected_start
            if offset > eps:
                raise ValidationError(
                    f"Gap between {expected_start:.3f}s and {seg.start:.3f}s",
                    rule="coverage"
                )
            if offset < -eps:
                raise ValidationError(
                    f"Segment {seg.id} starting at {seg.start:.3f}s overlaps the previous "
                    f"segment ending at {expected_start:.3f}s",
                    rule="overlap"
                )

            start = expected_start
            end = min(max(seg.end, start), duration)
            if (start, end) != (seg.start, seg.end):
                seg = replace(seg, start=start, end=end)
            result.append(seg)
            expected_start = end

        if duration - expected_start > eps:
            raise ValidationError(
                f"Timeline stops at {expected_start:.3f}s but media runs to {duration:.3f}s",
                rule="coverage"
            )
        if result[-1].end != duration:
            result[-1] = replace(result[-1], end=duration)
        return result
