"""
Media player abstraction used by the playback controller.

The controller only needs a clock it can read, seek, start and stop. A
GUI shell plugs its real video widget in here; `ClockPlayer` is the
headless stand-in used by the CLI preview.
"""

import time
from typing import Callable, List, Optional

from ..utils import clamp


class MediaPlayer:
    """Interface: current_time (get/set), duration, paused, play(), pause(), add_listener()."""

    @property
    def current_time(self) -> float:
        raise NotImplementedError

    @current_time.setter
    def current_time(self, value: float) -> None:
        raise NotImplementedError

    @property
    def duration(self) -> float:
        raise NotImplementedError

    @property
    def paused(self) -> bool:
        raise NotImplementedError

    def load(self, source: Optional[str], duration: float) -> None:
        """Switch to new media (None unloads), paused at 0."""
        raise NotImplementedError

    def play(self) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def add_listener(self, callback: Callable[[float], None]) -> None:
        """Register a callback for position changes (seeks)."""
        raise NotImplementedError


class ClockPlayer(MediaPlayer):
    """Wall-clock player: time advances while playing and stops at the media end."""

    def __init__(
        self,
        duration: float = 0.0,
        clip=None,
        clock: Callable[[], float] = time.monotonic,
        rate: float = 1.0
    ):
        """
        Args:
            duration: Media duration in seconds (ignored when clip is given)
            clip: Optional MoviePy clip; its duration is used
            clock: Monotonic time source
            rate: Playback speed multiplier
        """
        self.clip = clip
        self.source: Optional[str] = None
        self._duration = float(clip.duration) if clip is not None else float(duration)
        self._clock = clock
        self.rate = rate
        self._position = 0.0
        self._anchor: Optional[float] = None
        self._listeners: List[Callable[[float], None]] = []

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def paused(self) -> bool:
        return self._anchor is None

    @property
    def current_time(self) -> float:
        if self._anchor is None:
            return self._position
        elapsed = (self._clock() - self._anchor) * self.rate
        position = self._position + elapsed
        if position >= self._duration:
            # reached the end: behave like a media element and stop
            self._position = self._duration
            self._anchor = None
            return self._duration
        return position

    @current_time.setter
    def current_time(self, value: float) -> None:
        self._position = clamp(float(value), 0.0, self._duration)
        if self._anchor is not None:
            self._anchor = self._clock()
        for listener in list(self._listeners):
            listener(self._position)

    def load(self, source: Optional[str], duration: float) -> None:
        self.source = source
        self._duration = max(float(duration), 0.0)
        self._position = 0.0
        self._anchor = None

    def play(self) -> None:
        if self._anchor is None and self._position < self._duration:
            self._anchor = self._clock()

    def pause(self) -> None:
        if self._anchor is not None:
            self._position = self.current_time
            self._anchor = None

    def add_listener(self, callback: Callable[[float], None]) -> None:
        self._listeners.append(callback)
