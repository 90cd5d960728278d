"""
ChatCut - conversational video editor.
Edit a video by chatting: the transcript and a segment timeline are
kept in step with playback, and an assistant proposes new timelines.
"""

from .errors import (
    ChatCutError,
    ExportError,
    MediaUnavailableError,
    OutOfRangeError,
    ServiceError,
    ValidationError,
)
from .models import ChatMessage, EditProposal, PlaybackState, Project, Segment, TranscriptItem
from .managers import (
    ChatLog,
    PlaybackController,
    PlaybackPhase,
    ProjectManager,
    SegmentStore,
    TimelineController,
    TranscriptIndex,
)

__version__ = "0.1.0"

__all__ = [
    'ChatCutError', 'ExportError', 'MediaUnavailableError', 'OutOfRangeError',
    'ServiceError', 'ValidationError',
    'ChatMessage', 'EditProposal', 'PlaybackState', 'Project', 'Segment', 'TranscriptItem',
    'ChatLog', 'PlaybackController', 'PlaybackPhase', 'ProjectManager', 'SegmentStore',
    'TimelineController', 'TranscriptIndex'
]
