"""Tests for playback redirection, end of timeline, seeking and preview mirroring."""

import pytest

from chatcut.errors import MediaUnavailableError
from chatcut.managers import PlaybackController, PlaybackPhase, SegmentStore
from chatcut.models import PlaybackState
from conftest import FakePlayer, segments_from


def test_play_arms_tick(playback, player, scheduler, state):
    playback.play()
    assert playback.phase == PlaybackPhase.PLAYING
    assert state.is_playing
    assert not player.paused
    assert len(scheduler.pending) == 1
    ms, callback, _ = next(iter(scheduler.pending.values()))
    assert ms == 50


def test_tick_skips_cut_material(playback, player, scheduler, state):
    playback.play()
    player.current_time = 6.0
    scheduler.fire_all()
    assert player.current_time == 8.0
    assert state.current_time == 8.0
    assert playback.phase == PlaybackPhase.PLAYING
    assert len(scheduler.pending) == 1


def test_end_of_timeline_pauses_at_duration(playback, player, scheduler, state):
    player.current_time = 9.0
    playback.play()
    player.advance(3.0)
    assert player.current_time == 12.0
    scheduler.fire_all()
    assert player.paused
    assert not state.is_playing
    assert state.current_time == 12.0
    assert playback.phase == PlaybackPhase.STOPPED
    assert scheduler.pending == {}


def test_end_of_timeline_when_rest_is_cut(scheduler, state):
    store = SegmentStore(12.0, segments_from([(0, 5, True), (5, 12, False)]))
    player_clock = FakePlayer(12.0)
    playback = PlaybackController(store, player_clock, state, scheduler)
    playback.play()
    player_clock.advance(5.5)
    scheduler.fire_all()
    assert state.current_time == 12.0
    assert not state.is_playing
    # the player clock is left where playback stopped
    assert player_clock.current_time == 5.5


def test_tick_inside_active_segment_only_publishes(playback, player, scheduler, state):
    playback.play()
    player.advance(2.5)
    scheduler.fire_all()
    assert state.current_time == 2.5
    assert player.seeks == []


def test_play_from_end_restarts_at_zero(playback, player, scheduler, state):
    state.current_time = 12.0
    player.current_time = 12.0
    playback.play()
    assert player.current_time == 0.0
    assert state.current_time == 0.0


def test_play_from_cut_material_redirects_immediately(playback, player):
    player.current_time = 6.0
    playback.play()
    assert player.current_time == 8.0


def test_play_without_media_raises(player, state, scheduler):
    playback = PlaybackController(SegmentStore(), player, state, scheduler)
    with pytest.raises(MediaUnavailableError):
        playback.play()


def test_pause_cancels_tick_and_stale_tick_is_ignored(playback, player, scheduler, state):
    playback.play()
    stale = next(iter(scheduler.pending.values()))[1]
    playback.pause()
    assert scheduler.pending == {}
    assert player.paused
    player.current_time = 6.0
    stale()
    assert player.current_time == 6.0
    assert scheduler.pending == {}


def test_stop_rewinds(playback, player, state):
    player.current_time = 3.0
    playback.play()
    playback.stop()
    assert player.current_time == 0.0
    assert state.current_time == 0.0
    assert not state.is_playing


def test_toggle(playback):
    playback.toggle()
    assert playback.is_playing
    playback.toggle()
    assert not playback.is_playing


def test_seek_clamps_and_redirects_while_playing(playback, player, state):
    playback.play()
    playback.handle_seek(6.5)
    assert player.current_time == 8.0
    assert playback.phase == PlaybackPhase.PLAYING
    playback.handle_seek(99)
    assert state.current_time == 12.0
    assert playback.phase == PlaybackPhase.STOPPED


def test_seek_while_stopped_snaps_out_of_cut_material(playback, player, state):
    playback.handle_seek(-4)
    assert state.current_time == 0.0
    playback.handle_seek(6.0)
    assert player.current_time == 8.0
    assert state.current_time == 8.0
    assert playback.phase == PlaybackPhase.STOPPED
    assert player.paused


def test_seek_while_stopped_into_trailing_cut_stays_put(scheduler, state):
    store = SegmentStore(12.0, segments_from([(0, 5, True), (5, 12, False)]))
    player_clock = FakePlayer(12.0)
    events = []
    playback = PlaybackController(store, player_clock, state, scheduler,
                                  on_redirect=lambda a, b: events.append((a, b)))
    playback.handle_seek(6.0)
    assert player_clock.current_time == 6.0
    assert state.current_time == 6.0
    assert playback.phase == PlaybackPhase.STOPPED
    assert events == []


def test_tick_reads_latest_store_snapshot(playback, store, player, scheduler):
    playback.play()
    store.replace_all(segments_from([(0, 2, True), (2, 12, False)]))
    player.advance(3.0)
    scheduler.fire_all()
    assert playback.phase == PlaybackPhase.STOPPED


def test_preview_mirrors_with_drift_tolerance(store, player, state, scheduler, preview):
    playback = PlaybackController(store, player, state, scheduler, preview=preview)
    playback.play()
    assert not preview.paused

    player.advance(1.05)
    preview.advance(1.0)
    scheduler.fire_all()
    assert preview.seeks == []

    player.advance(1.0)
    scheduler.fire_all()
    assert preview.current_time == pytest.approx(player.current_time)

    playback.pause()
    assert preview.paused


def test_hidden_preview_is_not_driven(store, player, state, scheduler, preview):
    playback = PlaybackController(store, player, state, scheduler, preview=preview)
    playback.set_preview_visible(False)
    playback.play()
    player.advance(3.0)
    scheduler.fire_all()
    assert preview.paused
    assert preview.seeks == []


def test_redirect_callback(store, player, scheduler):
    events = []
    playback = PlaybackController(store, player, PlaybackState(), scheduler,
                                  on_redirect=lambda a, b: events.append((a, b)))
    playback.play()
    player.current_time = 6.0
    scheduler.fire_all()
    player.current_time = 12.0
    scheduler.fire_all()
    assert events == [(6.0, 8.0), (12.0, None)]
