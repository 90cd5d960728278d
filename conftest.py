"""Shared fakes and fixtures for the ChatCut tests."""

import itertools
from types import SimpleNamespace

import pytest

from chatcut.errors import ServiceError
from chatcut.managers import ChatLog, PlaybackController, SegmentStore, TimelineController
from chatcut.models import EditProposal, PlaybackState, Segment


class FakePlayer:
    """MediaPlayer whose clock only moves when a test says so."""

    def __init__(self, duration=12.0):
        self._time = 0.0
        self.duration = duration
        self.paused = True
        self.source = None
        self.seeks = []
        self._listeners = []

    @property
    def current_time(self):
        return self._time

    @current_time.setter
    def current_time(self, value):
        self._time = max(0.0, min(float(value), self.duration))
        self.seeks.append(self._time)
        for listener in self._listeners:
            listener(self._time)

    def advance(self, seconds):
        """Let playback run for a while without registering a seek."""
        if not self.paused:
            self._time = min(self._time + seconds, self.duration)

    def load(self, source, duration):
        self.source = source
        self.duration = duration
        self._time = 0.0
        self.paused = True

    def play(self):
        self.paused = False

    def pause(self):
        self.paused = True

    def add_listener(self, callback):
        self._listeners.append(callback)


class ManualScheduler:
    """tkinter-style after()/after_cancel() that only fires when asked."""

    def __init__(self):
        self._counter = itertools.count(1)
        self.pending = {}

    def after(self, ms, callback, *args):
        token = f"after#{next(self._counter)}"
        self.pending[token] = (ms, callback, args)
        return token

    def after_cancel(self, token):
        self.pending.pop(token, None)

    def fire_all(self):
        """Run everything currently queued (not what those callbacks queue)."""
        batch = list(self.pending.items())
        self.pending.clear()
        for _, (_, callback, args) in batch:
            callback(*args)
        return len(batch)


class FakeEditService:
    """Returns queued proposals (or raises queued errors) and records each request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def propose_edit(self, transcript, segments, instruction, visual_context=None, duration=None):
        self.calls.append(SimpleNamespace(
            transcript=list(transcript), segments=list(segments), instruction=instruction,
            visual_context=visual_context, duration=duration
        ))
        if not self.responses:
            raise ServiceError("edit", "no response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeLLM:
    """LangChain chat model stand-in: invoke(messages) -> object with .content."""

    def __init__(self, content="", error=None):
        self.content = content
        self.error = error
        self.messages = None

    def invoke(self, messages):
        self.messages = messages
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


class FakeSpeech:
    def __init__(self):
        self.spoken = []

    def speak(self, text):
        self.spoken.append(text)


def segments_from(layout):
    """Build segments from (start, end, active) triples."""
    return [
        Segment(id=f"s{i}", start=start, end=end, description=f"part {i}", active=active)
        for i, (start, end, active) in enumerate(layout)
    ]


def proposal(reply, layout):
    return EditProposal(reply=reply, edited_segments=[s.to_dict() for s in segments_from(layout)])


@pytest.fixture
def store():
    """[0,5 kept][5,8 cut][8,12 kept]"""
    return SegmentStore(12.0, segments_from([(0, 5, True), (5, 8, False), (8, 12, True)]))


@pytest.fixture
def player():
    return FakePlayer(12.0)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def state():
    return PlaybackState()


@pytest.fixture
def preview():
    return FakePlayer(12.0)


@pytest.fixture
def playback(store, player, state, scheduler):
    return PlaybackController(store, player, state, scheduler)


@pytest.fixture
def timeline(store, playback):
    return TimelineController(store, playback, track_width=1200.0)


@pytest.fixture
def chat():
    return ChatLog()
