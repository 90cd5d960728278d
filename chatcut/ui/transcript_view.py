"""
View projections for the transcript and timeline.

Pure functions of (transcript, segments, current time). A GUI shell or
the CLI renders what these return; nothing here holds state.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from ..config import CARD_GAP_THRESHOLD
from ..managers.transcript_index import TranscriptIndex
from ..models import Segment, TranscriptItem
from ..utils import format_ruler_label

RULER_TICKS = 21
RULER_LABEL_EVERY = 5


@dataclass
class TranscriptLine:
    item: TranscriptItem
    is_active: bool


@dataclass
class TranscriptCard:
    """Consecutive kept transcript items shown as one block."""
    items: List[TranscriptItem]
    is_playing: bool

    @property
    def start(self) -> float:
        """Seek target when the card is clicked."""
        return self.items[0].start

    @property
    def end(self) -> float:
        return self.items[-1].end

    @property
    def text(self) -> str:
        return " ".join(item.text for item in self.items)


@dataclass
class TimelineBlock:
    segment: Segment
    left: float  # percent of the track
    width: float  # percent of the track


@dataclass
class RulerTick:
    time: float
    position: float  # percent of the track
    label: str = ""


@dataclass
class TimelineView:
    blocks: List[TimelineBlock] = field(default_factory=list)
    playhead: float = 0.0  # percent of the track
    ticks: List[RulerTick] = field(default_factory=list)


def continuous_view(transcript: Sequence[TranscriptItem], current_time: float) -> List[TranscriptLine]:
    """Every transcript item; the one under the playhead is active."""
    return [TranscriptLine(item=item, is_active=item.start <= current_time < item.end) for item in transcript]


def card_view(
    transcript: Sequence[TranscriptItem],
    segments: Sequence[Segment],
    current_time: float,
    gap_threshold: float = CARD_GAP_THRESHOLD
) -> List[TranscriptCard]:
    """
    Kept transcript grouped into cards.

    Only items lying fully inside an active segment are shown. A new card
    starts wherever the gap to the previous item exceeds gap_threshold.
    """
    index = transcript if isinstance(transcript, TranscriptIndex) else TranscriptIndex(transcript)
    kept = index.items_in_active(segments)
    return [
        TranscriptCard(items=group, is_playing=group[0].start <= current_time <= group[-1].end)
        for group in TranscriptIndex.group_cards(kept, gap_threshold)
    ]


def timeline_view(segments: Sequence[Segment], duration: float, current_time: float) -> TimelineView:
    """Kept blocks, playhead and ruler as percentages of the track width."""
    if duration <= 0:
        return TimelineView()

    def pos(t: float) -> float:
        return max(0.0, min(100.0, t / duration * 100.0))

    blocks = [
        TimelineBlock(segment=seg, left=pos(seg.start), width=pos(seg.end) - pos(seg.start))
        for seg in segments if seg.active and seg.end > seg.start
    ]
    ticks = []
    for i in range(RULER_TICKS):
        t = duration * i / (RULER_TICKS - 1)
        label = format_ruler_label(t) if i % RULER_LABEL_EVERY == 0 else ""
        ticks.append(RulerTick(time=t, position=pos(t), label=label))
    return TimelineView(blocks=blocks, playhead=pos(current_time), ticks=ticks)
