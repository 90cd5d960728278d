"""Tests for applying assistant edit proposals to the timeline."""

import pytest

from chatcut.errors import ChatCutError, ServiceError
from chatcut.integrations.edit_reconciler import EditReconciler
from chatcut.managers import SegmentStore
from chatcut.models import EditProposal, TranscriptItem
from conftest import FakeEditService, FakeSpeech, proposal

TRANSCRIPT = [
    TranscriptItem(1, 0.0, 4.0, "Hello and welcome."),
    TranscriptItem(2, 4.0, 9.0, "Today we talk about editing."),
    TranscriptItem(3, 9.0, 12.0, "Thanks for watching."),
]


@pytest.fixture
def speech():
    return FakeSpeech()


def make_reconciler(store, chat, service, playback, timeline, scheduler, speech=None, generation=lambda: 0):
    return EditReconciler(
        store, chat, service,
        playback=playback, timeline=timeline, scheduler=scheduler,
        speech=speech, generation=generation
    )


def test_valid_proposal_replaces_timeline_and_seeks(store, chat, playback, timeline, scheduler, player, speech):
    reconciler = make_reconciler(store, chat, FakeEditService(), playback, timeline, scheduler, speech)
    result = reconciler.reconcile(proposal("Kept only the middle.", [(0, 3, False), (3, 9, True), (9, 12, False)]))

    assert result.applied
    assert store.active_intervals() == [(3, 9)]
    assert player.current_time == 3.0
    assert chat.last().role == "model"
    assert chat.last().text == "Kept only the middle."
    assert speech.spoken == ["Kept only the middle."]


def test_invalid_proposal_keeps_timeline_and_still_replies(store, chat, playback, timeline, scheduler, player):
    before = store.segments
    reconciler = make_reconciler(store, chat, FakeEditService(), playback, timeline, scheduler)
    result = reconciler.reconcile(proposal("Trimmed the ending.", [(0, 5, True), (5, 10, False)]))

    assert not result.applied
    assert result.error
    assert store.segments is before
    assert player.seeks == []
    texts = [m.text for m in chat]
    assert texts[0] == "Trimmed the ending."
    assert texts[1].startswith("I couldn't apply that edit:")


def test_malformed_records_are_rejected(store, chat, playback, timeline, scheduler):
    reconciler = make_reconciler(store, chat, FakeEditService(), playback, timeline, scheduler)
    bad = EditProposal(reply="ok", edited_segments=[{"start": 0, "end": 12}])
    result = reconciler.reconcile(bad)
    assert not result.applied
    assert len(store) == 3


def test_stale_generation_is_dropped(store, chat, playback, timeline, scheduler):
    generation = {"value": 2}
    reconciler = make_reconciler(store, chat, FakeEditService(), playback, timeline, scheduler,
                                 generation=lambda: generation["value"])
    result = reconciler.reconcile(proposal("late", [(0, 12, False)]), generation=1)
    assert result.stale
    assert len(chat) == 0
    assert len(store) == 3


def test_request_edit_blocking(store, chat, playback, timeline, scheduler):
    service = FakeEditService(proposal("Done.", [(0, 6, True), (6, 12, False)]))
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler)
    result = reconciler.request_edit("cut the second half", TRANSCRIPT)

    assert result.applied
    assert [m.role for m in chat] == ["user", "model"]
    call = service.calls[0]
    assert call.instruction == "cut the second half"
    assert call.duration == 12.0
    assert len(call.segments) == 3


def test_request_edit_service_failure_is_reported(store, chat, playback, timeline, scheduler):
    service = FakeEditService(ServiceError("edit", "timeout"))
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler)
    result = reconciler.request_edit("remove silence", TRANSCRIPT)

    assert not result.applied
    assert chat.last().text == "Sorry, I encountered an error processing your request."
    assert len(store) == 3
    # one request, no retry
    assert len(service.calls) == 1


def test_request_without_media(chat, playback, timeline, scheduler):
    reconciler = make_reconciler(SegmentStore(), chat, FakeEditService(), playback, timeline, scheduler)
    with pytest.raises(ChatCutError):
        reconciler.request_edit("anything", [])


def test_submit_applies_on_scheduler_thread(store, chat, playback, timeline, scheduler):
    service = FakeEditService(proposal("Cut the intro.", [(0, 4, False), (4, 12, True)]))
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler)
    results = []

    assert reconciler.submit("cut the intro", TRANSCRIPT, on_done=results.append)
    assert reconciler.is_pending
    assert timeline.is_locked
    assert chat.last().role == "user"

    reconciler.worker_thread.join(timeout=5)
    # nothing is applied until the scheduler runs the posted callback
    assert len(store) == 3
    scheduler.fire_all()

    assert not reconciler.is_pending
    assert not timeline.is_locked
    assert results[0].applied
    assert store.active_intervals() == [(4, 12)]


def test_submit_rejected_while_pending(store, chat, playback, timeline, scheduler):
    service = FakeEditService(proposal("a", [(0, 12, True)]), proposal("b", [(0, 12, True)]))
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler)
    assert reconciler.submit("first", TRANSCRIPT)
    assert reconciler.submit("second", TRANSCRIPT) is False
    reconciler.worker_thread.join(timeout=5)
    scheduler.fire_all()
    assert [m.text for m in chat if m.role == "user"] == ["first"]


def test_submit_rejected_while_dragging(store, chat, playback, timeline, scheduler):
    reconciler = make_reconciler(store, chat, FakeEditService(), playback, timeline, scheduler)
    timeline.on_handle_press("s0", "end", 500)
    assert reconciler.submit("cut", TRANSCRIPT) is False
    assert len(chat) == 0


def test_locked_timeline_ignores_drag_while_pending(store, chat, playback, timeline, scheduler):
    service = FakeEditService(proposal("ok", [(0, 12, True)]))
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler)
    reconciler.submit("keep all", TRANSCRIPT)
    assert timeline.on_handle_press("s0", "end", 500) is False
    reconciler.worker_thread.join(timeout=5)
    scheduler.fire_all()
    assert timeline.on_handle_press("s0", "end", 500) is True


def test_submit_unexpected_error_is_wrapped(store, chat, playback, timeline, scheduler):
    service = FakeEditService(RuntimeError("boom"))
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler)
    results = []
    reconciler.submit("cut", TRANSCRIPT, on_done=results.append)
    reconciler.worker_thread.join(timeout=5)
    scheduler.fire_all()
    assert not results[0].applied
    assert "boom" in results[0].error
    assert not reconciler.is_pending


def test_submit_result_from_previous_project_is_dropped(store, chat, playback, timeline, scheduler):
    generation = {"value": 0}
    service = FakeEditService(proposal("late", [(0, 12, False)]))
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler,
                                 generation=lambda: generation["value"])
    results = []
    reconciler.submit("cut everything", TRANSCRIPT, on_done=results.append)
    reconciler.worker_thread.join(timeout=5)
    generation["value"] += 1
    scheduler.fire_all()

    assert results[0].stale
    assert len(store) == 3
    assert [m.role for m in chat] == ["user"]


def test_reset_releases_timeline_for_next_request(store, chat, playback, timeline, scheduler):
    generation = {"value": 0}
    service = FakeEditService(
        proposal("late", [(0, 12, False)]),
        proposal("Kept the opening.", [(0, 5, True), (5, 12, False)]),
    )
    reconciler = make_reconciler(store, chat, service, playback, timeline, scheduler,
                                 generation=lambda: generation["value"])
    results = []
    reconciler.submit("cut everything", TRANSCRIPT, on_done=results.append)
    reconciler.worker_thread.join(timeout=5)

    generation["value"] += 1
    reconciler.reset()
    assert not reconciler.is_pending
    assert not timeline.is_locked

    assert reconciler.submit("keep the opening", TRANSCRIPT, on_done=results.append)
    reconciler.worker_thread.join(timeout=5)
    scheduler.fire_all()

    assert [r.stale for r in results] == [True, False]
    assert results[1].applied
    assert store.active_intervals() == [(0, 5)]
    assert not reconciler.is_pending
    assert not timeline.is_locked
