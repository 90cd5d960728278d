"""Tests for the LLM-backed edit-proposal service."""

import json

import pytest

from chatcut.errors import ServiceError, ValidationError
from chatcut.integrations.edit_service import EditService, format_segments
from chatcut.models import TranscriptItem
from conftest import FakeLLM, segments_from

TRANSCRIPT = [TranscriptItem(1, 0.0, 3.0, "Hello there."), TranscriptItem(2, 3.0, 5.0, "[Silence]", "silence")]
SEGMENTS = segments_from([(0, 5, True), (5, 12, True)])

REPLY = {
    "reply": "Removed the pause.",
    "editedSegments": [
        {"id": "a", "start": 0, "end": 3, "description": "Hello", "active": True},
        {"id": "b", "start": 3, "end": 5, "description": "Silence", "active": False},
        {"id": "c", "start": 5, "end": 12, "description": "Rest", "active": True},
    ],
}


def test_proposal_from_plain_json():
    llm = FakeLLM(json.dumps(REPLY))
    proposal = EditService(llm).propose_edit(TRANSCRIPT, SEGMENTS, "remove silence", duration=12.0)
    assert proposal.reply == "Removed the pause."
    assert len(proposal.edited_segments) == 3

    system, user = llm.messages
    assert "0 to 12.00" in system.content
    assert '"remove silence"' in user.content
    assert "{0.00-3.00} [speech]: Hello there." in user.content
    assert "No visual analysis available." in user.content


def test_proposal_inside_code_fence():
    llm = FakeLLM("Sure!\n```json\n" + json.dumps(REPLY) + "\n```")
    proposal = EditService(llm).propose_edit(TRANSCRIPT, SEGMENTS, "remove silence", visual_context="A kitchen.")
    assert proposal.edited_segments[1]["active"] is False
    assert "A kitchen." in llm.messages[1].content


def test_transport_error_becomes_service_error():
    llm = FakeLLM(error=ConnectionError("network down"))
    with pytest.raises(ServiceError) as excinfo:
        EditService(llm).propose_edit(TRANSCRIPT, SEGMENTS, "cut")
    assert excinfo.value.service == "edit"
    assert isinstance(excinfo.value.cause, ConnectionError)


def test_non_json_reply_is_service_error():
    with pytest.raises(ServiceError):
        EditService(FakeLLM("I can't do that.")).propose_edit(TRANSCRIPT, SEGMENTS, "cut")


@pytest.mark.parametrize("payload", [
    {"editedSegments": []},
    {"reply": "ok"},
    {"reply": "ok", "editedSegments": {"id": "a"}},
    {"reply": 3, "editedSegments": []},
])
def test_missing_fields_are_validation_errors(payload):
    with pytest.raises(ValidationError):
        EditService(FakeLLM(json.dumps(payload))).propose_edit(TRANSCRIPT, SEGMENTS, "cut")


def test_no_model_configured():
    with pytest.raises(ServiceError):
        EditService(None).propose_edit(TRANSCRIPT, SEGMENTS, "cut")


def test_format_segments_uses_short_description_key():
    data = json.loads(format_segments(SEGMENTS))
    assert data[0] == {"id": "s0", "start": 0, "end": 5, "active": True, "desc": "part 0"}
