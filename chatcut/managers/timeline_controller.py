"""
Timeline interaction for ChatCut.

Converts pointer gestures on the timeline track into segment boundary
moves and playhead seeks. Coordinates are track-relative pixels; the
caller (a tkinter canvas handler or a test) passes event.x straight in.
"""

from typing import Optional

from ..models import Segment
from ..utils import clamp
from ..utils.logging_utils import DualLogger, get_log_helper
from .segment_store import SegmentStore

EDGES = ("start", "end")


class TimelineController:
    """Handles boundary dragging and ruler seeking."""

    def __init__(
        self,
        store: SegmentStore,
        playback=None,
        track_width: float = 1000.0,
        logger: Optional[DualLogger] = None,
        verbose: bool = False
    ):
        """
        Initialize timeline controller.

        Args:
            store: Segment store the drags write to
            playback: Optional PlaybackController used for ruler seeks
            track_width: Width of the timeline track in pixels
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.store = store
        self.playback = playback
        self.track_width = float(track_width)
        self.log = get_log_helper(logger, verbose)

        self._locked = False
        self._drag_segment: Optional[str] = None
        self._drag_edge: Optional[str] = None
        self._drag_origin_time = 0.0
        self._drag_origin_x = 0.0

    @property
    def is_dragging(self) -> bool:
        return self._drag_segment is not None

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def drag_edge(self) -> Optional[str]:
        return self._drag_edge

    def lock(self):
        """Disable boundary input (an edit reconciliation is pending)."""
        self._locked = True

    def unlock(self):
        self._locked = False

    def set_track_width(self, width: float):
        if width > 0:
            self.track_width = float(width)

    def seconds_per_pixel(self) -> float:
        if self.track_width <= 0:
            return 0.0
        return self.store.duration / self.track_width

    def pixels_to_time(self, dx: float) -> float:
        return dx * self.seconds_per_pixel()

    def x_to_time(self, x: float) -> float:
        return clamp(self.pixels_to_time(x), 0.0, self.store.duration)

    # ------------------------------------------------------------------
    # Boundary drag
    # ------------------------------------------------------------------
    def on_handle_press(self, segment_id: str, edge: str, x: float) -> bool:
        """
        Begin dragging one edge of a segment.

        Returns:
            True if the gesture started, False when input is locked
        """
        if edge not in EDGES:
            raise ValueError(f"edge must be one of {EDGES}, got {edge!r}")
        if self._locked or self.store.is_empty:
            return False
        seg = self.store.get(segment_id)
        self._drag_segment = segment_id
        self._drag_edge = edge
        self._drag_origin_time = seg.start if edge == "start" else seg.end
        self._drag_origin_x = float(x)
        self.log.debug(f"[TIMELINE] Drag {edge} of {segment_id} from {self._drag_origin_time:.3f}s")
        return True

    def on_handle_drag(self, x: float) -> Optional[Segment]:
        """Apply one motion event; the store is updated immediately."""
        if not self.is_dragging:
            return None
        new_time = clamp(
            self._drag_origin_time + self.pixels_to_time(float(x) - self._drag_origin_x),
            0.0,
            self.store.duration
        )

        current = self.store.get(self._drag_segment)
        if self._drag_edge == "start":
            crossed = new_time > current.end
            updated = self.store.update_one(self._drag_segment, new_start=new_time)
        else:
            crossed = new_time < current.start
            updated = self.store.update_one(self._drag_segment, new_end=new_time)

        if crossed:
            # the store swapped endpoints, so the pointer now holds the other edge
            self._drag_edge = "end" if self._drag_edge == "start" else "start"
            self.log.debug(f"[TIMELINE] {self._drag_segment} handles swapped, now dragging {self._drag_edge}")
        return updated

    def on_handle_release(self) -> int:
        """
        End the gesture and drop segments the drag squeezed to zero length.

        Returns:
            Number of segments removed
        """
        if not self.is_dragging:
            return 0
        segment_id = self._drag_segment
        self._drag_segment = None
        self._drag_edge = None
        removed = self.store.normalize()
        self.log.info(f"[TIMELINE] Finished editing {segment_id}")
        return removed

    def cancel_drag(self):
        self._drag_segment = None
        self._drag_edge = None

    # ------------------------------------------------------------------
    # Ruler
    # ------------------------------------------------------------------
    def on_ruler_click(self, x: float) -> Optional[float]:
        """Seek the playhead to the clicked ruler position."""
        if self.store.is_empty:
            return None
        time = self.x_to_time(x)
        if self.playback is not None:
            self.playback.handle_seek(time)
        return time
