"""
Data models for the ChatCut editor.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..errors import ValidationError

TRANSCRIPT_CATEGORIES = ("speech", "silence", "music", "noise", "intro", "outro")
CHAT_ROLES = ("user", "model")
ANALYSIS_STATUSES = ("idle", "extracting_audio", "transcribing", "ready", "error")


def _as_seconds(value: Any, name: str) -> float:
    # bool is an int subclass; a True start time is a malformed record
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{name}' must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ValidationError(f"'{name}' must be finite, got {value!r}")
    return value


@dataclass(frozen=True)
class TranscriptItem:
    """A time-coded unit of recognized speech or sound."""
    id: int
    start: float
    end: float
    text: str
    category: str = "speech"  # one of TRANSCRIPT_CATEGORIES
    speaker: Optional[str] = None

    def contains(self, time: float) -> bool:
        return self.start <= time < self.end

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "category": self.category,
        }
        if self.speaker is not None:
            data["speaker"] = self.speaker
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptItem":
        """
        Build a transcript item from an untyped record.

        Raises:
            ValidationError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Transcript item must be an object, got {type(data).__name__}")
        try:
            item_id = int(data["id"])
            start = _as_seconds(data["start"], "start")
            end = _as_seconds(data["end"], "end")
        except KeyError as e:
            raise ValidationError(f"Transcript item missing field {e}")
        except (TypeError, ValueError):
            raise ValidationError(f"Transcript item has a non-integer id: {data.get('id')!r}")
        if end <= start:
            raise ValidationError(f"Transcript item {item_id} ends at {end} before it starts at {start}")
        category = data.get("category", "speech")
        if category not in TRANSCRIPT_CATEGORIES:
            raise ValidationError(f"Transcript item {item_id} has unknown category {category!r}")
        speaker = data.get("speaker")
        return cls(
            id=item_id,
            start=start,
            end=end,
            text=str(data.get("text", "")),
            category=category,
            speaker=str(speaker) if speaker is not None else None,
        )


@dataclass(frozen=True)
class Segment:
    """A labeled time interval of the source media; inactive segments are cut."""
    id: str
    start: float
    end: float
    description: str = ""
    active: bool = True

    @property
    def duration(self) -> float:
        return self.end - self.start

    def contains(self, time: float) -> bool:
        return self.start <= time < self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "description": self.description,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        """
        Build a segment from an untyped record (e.g. an LLM edit proposal).

        A missing id gets a fresh one; a missing description becomes empty.

        Raises:
            ValidationError: If start/end/active are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Segment must be an object, got {type(data).__name__}")
        for key in ("start", "end", "active"):
            if key not in data:
                raise ValidationError(f"Segment missing field '{key}'")
        start = _as_seconds(data["start"], "start")
        end = _as_seconds(data["end"], "end")
        active = data["active"]
        if not isinstance(active, bool):
            raise ValidationError(f"Segment 'active' must be a boolean, got {active!r}")
        segment_id = data.get("id")
        if segment_id is None or str(segment_id).strip() == "":
            segment_id = new_segment_id()
        return cls(
            id=str(segment_id),
            start=start,
            end=end,
            description=str(data.get("description", data.get("desc", "")) or ""),
            active=active,
        )


def new_segment_id() -> str:
    return f"seg-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class ChatMessage:
    """One entry of the append-only chat log."""
    id: str
    role: str  # "user" or "model"
    text: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        role = data.get("role")
        if role not in CHAT_ROLES:
            raise ValidationError(f"Chat message has unknown role {role!r}")
        timestamp = data.get("timestamp")
        try:
            parsed = datetime.fromisoformat(timestamp) if timestamp else datetime.now()
        except (TypeError, ValueError):
            parsed = datetime.now()
        return cls(
            id=str(data.get("id") or uuid.uuid4().hex),
            role=role,
            text=str(data.get("text", "")),
            timestamp=parsed,
        )


@dataclass
class PlaybackState:
    """Current playhead; written only by the playback controller and seeks."""
    current_time: float = 0.0
    is_playing: bool = False


@dataclass
class EditProposal:
    """Reply plus replacement timeline as returned by the edit-proposal service (unvalidated)."""
    reply: str
    edited_segments: List[Any] = field(default_factory=list)


@dataclass
class Project:
    """Persisted project state."""
    id: str
    name: str = "Untitled Project"
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    last_modified: float = 0.0
    video_path: Optional[str] = None
    duration: float = 0.0
    visual_description: str = ""
    sequence_name: str = "Main Sequence"
    transcript: List[TranscriptItem] = field(default_factory=list)
    segments: List[Segment] = field(default_factory=list)
    messages: List[ChatMessage] = field(default_factory=list)

    def config_dict(self) -> Dict[str, Any]:
        """Project metadata without the timeline, transcript or chat."""
        return {
            "id": self.id,
            "project_name": self.name,
            "created_at": self.created_at,
            "last_modified": self.last_modified,
            "video_path": self.video_path,
            "duration": self.duration,
            "visual_description": self.visual_description,
            "sequence_name": self.sequence_name,
        }
