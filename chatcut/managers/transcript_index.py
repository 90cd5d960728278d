"""
Read-only, time-ordered transcript for a project.
"""

from bisect import bisect_right
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from ..config import CARD_GAP_THRESHOLD
from ..models import Segment, TranscriptItem


class TranscriptIndex:
    """Immutable transcript items sorted by start time."""

    def __init__(self, items: Iterable[TranscriptItem] = ()):
        self._items: Tuple[TranscriptItem, ...] = tuple(sorted(items, key=lambda i: (i.start, i.end)))
        self._starts = [item.start for item in self._items]

    @classmethod
    def from_dicts(cls, records: Iterable[dict]) -> "TranscriptIndex":
        """Build from untyped records; raises ValidationError on a malformed item."""
        return cls(TranscriptItem.from_dict(record) for record in records)

    @property
    def items(self) -> Tuple[TranscriptItem, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TranscriptItem]:
        return iter(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @property
    def end_time(self) -> float:
        """End of the last item, 0.0 for an empty transcript."""
        return max((item.end for item in self._items), default=0.0)

    def item_at(self, time: float) -> Optional[TranscriptItem]:
        # items may overlap, so walk back from the last item starting at or before time
        index = bisect_right(self._starts, time) - 1
        while index >= 0:
            item = self._items[index]
            if item.contains(time):
                return item
            index -= 1
        return None

    def items_within(self, start: float, end: float) -> List[TranscriptItem]:
        """Items lying fully inside [start, end]."""
        return [item for item in self._items if item.start >= start and item.end <= end]

    def items_in_active(self, segments: Sequence[Segment]) -> List[TranscriptItem]:
        """Items fully inside some active segment, in time order."""
        active = [seg for seg in segments if seg.active]
        return [
            item for item in self._items
            if any(item.start >= seg.start and item.end <= seg.end for seg in active)
        ]

    @staticmethod
    def group_cards(
        items: Sequence[TranscriptItem],
        gap_threshold: float = CARD_GAP_THRESHOLD
    ) -> List[List[TranscriptItem]]:
        """Group consecutive items, starting a new group when the silence between them exceeds gap_threshold."""
        groups: List[List[TranscriptItem]] = []
        for item in items:
            if groups and item.start - groups[-1][-1].end <= gap_threshold:
                groups[-1].append(item)
            else:
                groups.append([item])
        return groups

    def to_dicts(self) -> List[dict]:
        return [item.to_dict() for item in self._items]

    def to_prompt_lines(self) -> List[str]:
        return [
            f"{{{item.start:.2f}-{item.end:.2f}}} [{item.category}]: {item.text}"
            for item in self._items
        ]
