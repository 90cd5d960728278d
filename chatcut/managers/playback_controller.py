"""
Playback control for ChatCut.

Keeps the source player on kept material: while playing, a tick runs
every TICK_INTERVAL_MS on the control thread, publishes the player clock
to the shared PlaybackState, skips over cut material and stops at the
end of the last kept segment. An optional preview player is kept in
step with the source.
"""

from enum import Enum
from typing import Any, Callable, Optional

from ..config import DRIFT_TOLERANCE, TICK_INTERVAL_MS
from ..errors import MediaUnavailableError
from ..models import PlaybackState
from ..utils import clamp
from ..utils.logging_utils import DualLogger, get_log_helper
from .segment_store import SegmentStore


class PlaybackPhase(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    SEEKING = "seeking"


class PlaybackController:
    """Handles playback, redirection over cut material and preview mirroring."""

    def __init__(
        self,
        store: SegmentStore,
        player,
        state: PlaybackState,
        scheduler,
        preview=None,
        tick_interval: float = TICK_INTERVAL_MS / 1000.0,
        drift_tolerance: float = DRIFT_TOLERANCE,
        on_redirect: Optional[Callable[[float, Optional[float]], Any]] = None,
        logger: Optional[DualLogger] = None,
        verbose: bool = False
    ):
        """
        Initialize playback controller.

        Args:
            store: Segment store; read fresh on every tick
            player: Source MediaPlayer
            state: Shared playback state
            scheduler: Object with tkinter's after()/after_cancel()
            preview: Optional MediaPlayer showing the edited result
            tick_interval: Seconds between ticks while playing
            drift_tolerance: Seconds the preview may lag before it is re-seeked
            on_redirect: Called as (from_time, to_time) on a jump; to_time is
                None when playback ran off the end of the timeline
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.store = store
        self.player = player
        self.state = state
        self.scheduler = scheduler
        self.preview = preview
        self.preview_visible = preview is not None
        self.tick_interval = tick_interval
        self.drift_tolerance = drift_tolerance
        self.on_redirect = on_redirect
        self.log = get_log_helper(logger, verbose)

        self.phase = PlaybackPhase.STOPPED
        self._tick_token = None

        add_listener = getattr(player, "add_listener", None)
        if add_listener is not None:
            add_listener(self._on_player_position)

    @property
    def is_playing(self) -> bool:
        return self.phase == PlaybackPhase.PLAYING

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def play(self):
        """Start playback from the current position (from 0 when parked at the end)."""
        if self.phase == PlaybackPhase.PLAYING:
            return
        if self.store.is_empty:
            raise MediaUnavailableError("No media loaded")

        if self.state.current_time >= self.store.duration or self.player.current_time >= self.store.duration:
            self.player.current_time = 0.0
            self.state.current_time = 0.0

        self.phase = PlaybackPhase.PLAYING
        self.state.is_playing = True
        self.player.play()
        self.log.info(f"[PLAYBACK] Playing from {self.player.current_time:.2f}s")

        self._enforce(self.player.current_time)
        if self.phase == PlaybackPhase.PLAYING:
            self._schedule_tick()

    def pause(self):
        """Pause playback, keeping the playhead where it is."""
        self._cancel_tick()
        self.player.pause()
        if self.preview is not None:
            self.preview.pause()
        self.phase = PlaybackPhase.STOPPED
        self.state.is_playing = False
        self.state.current_time = self.player.current_time

    def toggle(self):
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def stop(self):
        """Pause and rewind to 0."""
        self.pause()
        self.player.current_time = 0.0
        self.state.current_time = 0.0
        if self.preview is not None:
            self.preview.current_time = 0.0

    def set_preview_visible(self, visible: bool):
        """Mirror to the preview only while it is on screen."""
        self.preview_visible = bool(visible) and self.preview is not None
        if not self.preview_visible and self.preview is not None:
            self.preview.pause()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self):
        """One bounded synchronization step; re-arms itself while playing."""
        self._tick_token = None
        if self.phase != PlaybackPhase.PLAYING:
            return

        self._enforce(self.player.current_time)

        if self.phase == PlaybackPhase.PLAYING:
            self._schedule_tick()

    def handle_seek(self, time: float):
        """User seek: clamp, move the playhead and apply the playback rules once."""
        if self.store.is_empty:
            return
        resume = self.phase == PlaybackPhase.PLAYING
        self.phase = PlaybackPhase.SEEKING
        target = clamp(float(time), 0.0, self.store.duration)
        self.player.current_time = target
        self.state.current_time = target

        self.phase = PlaybackPhase.PLAYING if resume else PlaybackPhase.STOPPED
        # a seek into cut material snaps forward even while stopped
        self._enforce(target, stop_at_end=resume)
        self.log.debug(f"[PLAYBACK] Seek to {target:.2f}s")

    def seek(self, time: float):
        """Programmatic seek (e.g. after an edit). Same rules as a user seek."""
        self.handle_seek(time)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _enforce(self, time: float, stop_at_end: bool = True):
        self.state.current_time = time
        store = self.store
        if store.is_empty:
            return

        if store.active_at(time) is not None:
            self._mirror(time)
            return

        target = store.next_active_after(time)
        if target is not None:
            self.log.debug(f"[PLAYBACK] Skip cut material {time:.2f}s -> {target.start:.2f}s")
            self.player.current_time = target.start
            self.state.current_time = target.start
            self._mirror(target.start)
            if self.on_redirect:
                self.on_redirect(time, target.start)
            return

        # nothing kept after this point
        if not stop_at_end:
            self._mirror(time)
            return
        self.log.debug(f"[PLAYBACK] End of timeline at {time:.2f}s")
        self._cancel_tick()
        self.player.pause()
        if self.preview is not None:
            self.preview.pause()
        self.phase = PlaybackPhase.STOPPED
        self.state.is_playing = False
        self.state.current_time = store.duration
        if self.on_redirect:
            self.on_redirect(time, None)

    def _mirror(self, time: float):
        if not self.preview_visible or self.preview is None:
            return
        if abs(self.preview.current_time - time) > self.drift_tolerance:
            self.preview.current_time = time
        playing = self.state.is_playing
        if playing and self.preview.paused:
            self.preview.play()
        elif not playing and not self.preview.paused:
            self.preview.pause()

    def _on_player_position(self, time: float):
        if self.phase == PlaybackPhase.STOPPED:
            self.state.current_time = time

    def _schedule_tick(self):
        self._cancel_tick()
        self._tick_token = self.scheduler.after(int(self.tick_interval * 1000), self.tick)

    def _cancel_tick(self):
        if self._tick_token is not None:
            self.scheduler.after_cancel(self._tick_token)
            self._tick_token = None
