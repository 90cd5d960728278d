"""Tests for project persistence."""

import itertools
import json
import os
from types import SimpleNamespace

import pytest

from chatcut.managers import ChatLog, ChatManager, ProjectManager, TimelineManager
from chatcut.managers import project_manager as project_manager_module
from chatcut.models import TranscriptItem
from conftest import segments_from


@pytest.fixture
def manager(tmp_path):
    return ProjectManager(str(tmp_path / "projects"))


def test_create_save_load_round_trip(manager):
    project = manager.create_project("Interview")
    project.duration = 12.0
    project.visual_description = "Two people at a desk."
    project.transcript = [TranscriptItem(1, 0.0, 2.0, "Hi"), TranscriptItem(2, 2.0, 3.0, "[Silence]", "silence")]
    project.segments = segments_from([(0, 5, True), (5, 12, False)])
    chat = ChatLog()
    chat.append("user", "cut the end")
    chat.append("model", "Done.")
    project.messages = chat.messages
    manager.save(project)

    loaded = manager.load(project.id)
    assert loaded.name == "Interview"
    assert loaded.duration == 12.0
    assert loaded.visual_description == "Two people at a desk."
    assert loaded.transcript == project.transcript
    assert loaded.segments == project.segments
    assert [(m.role, m.text) for m in loaded.messages] == [("user", "cut the end"), ("model", "Done.")]
    assert os.path.isdir(os.path.join(manager.project_path(project.id), "video"))


def test_list_most_recent_first(manager, monkeypatch):
    clock = itertools.count(100)
    monkeypatch.setattr(project_manager_module, "time", SimpleNamespace(time=lambda: next(clock)))
    older = manager.create_project("older")
    newer = manager.create_project("newer")
    assert [p.id for p in manager.list()] == [newer.id, older.id]

    manager.rename(older.id, "renamed")
    listed = manager.list()
    assert listed[0].id == older.id
    assert listed[0].name == "renamed"


def test_delete(manager):
    project = manager.create_project("temp")
    manager.delete(project.id)
    assert not manager.exists(project.id)
    with pytest.raises(ValueError):
        manager.delete(project.id)
    with pytest.raises(ValueError):
        manager.load(project.id)


@pytest.mark.parametrize("project_id", ["../outside", "..", "nested/../../outside", ""])
def test_ids_outside_projects_dir_are_rejected(manager, tmp_path, project_id):
    outside = tmp_path / "outside"
    outside.mkdir(exist_ok=True)
    (outside / "project_config.json").write_text("{}")
    with pytest.raises(ValueError):
        manager.delete(project_id)
    with pytest.raises(ValueError):
        manager.load(project_id)
    assert (outside / "project_config.json").exists()


def test_corrupt_files_load_empty(manager):
    project = manager.create_project("broken")
    path = manager.project_path(project.id)
    for name in ("timeline.json", "chat_history.json", "transcript.json"):
        with open(os.path.join(path, name), "w") as f:
            f.write("{not json")

    loaded = manager.load(project.id)
    assert loaded.segments == []
    assert loaded.messages == []
    assert loaded.transcript == []


def test_invalid_entries_are_skipped(tmp_path):
    with open(tmp_path / "timeline.json", "w") as f:
        json.dump({"segments": [
            {"id": "a", "start": 0, "end": 5, "active": True},
            {"id": "b", "start": "five", "end": 9, "active": True},
        ]}, f)
    with open(tmp_path / "chat_history.json", "w") as f:
        json.dump([{"role": "user", "text": "hi"}, {"role": "robot", "text": "?"}], f)

    assert [s.id for s in TimelineManager.load_timeline(str(tmp_path))] == ["a"]
    assert [m.text for m in ChatManager.load_chat_history(str(tmp_path))] == ["hi"]


def test_import_video_copies_into_project(manager, tmp_path):
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"fake video")
    project = manager.create_project("with media")
    dest = manager.import_video(project, str(source))

    assert dest == os.path.join(manager.project_path(project.id), "video", "clip.mp4")
    assert project.video_path == dest
    with open(dest, "rb") as f:
        assert f.read() == b"fake video"
    with pytest.raises(FileNotFoundError):
        manager.import_video(project, str(tmp_path / "missing.mp4"))


def test_timeline_file_format(manager):
    project = manager.create_project("format")
    project.segments = segments_from([(0, 3, True)])
    manager.save(project)
    with open(os.path.join(manager.project_path(project.id), "timeline.json")) as f:
        data = json.load(f)
    assert data["version"] == "1.0"
    assert data["sequence_name"] == "Main Sequence"
    assert data["segments"][0] == {"id": "s0", "start": 0, "end": 3, "description": "part 0", "active": True}
