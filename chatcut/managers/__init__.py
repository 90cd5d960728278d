"""
Managers and controllers for ChatCut.
"""

from .segment_store import SegmentStore, drop_empty_segments
from .transcript_index import TranscriptIndex
from .timeline_controller import TimelineController
from .timeline_manager import TimelineManager
from .playback_controller import PlaybackController, PlaybackPhase
from .chat_manager import ChatLog, ChatManager
from .project_manager import ProjectManager

__all__ = [
    'SegmentStore',
    'drop_empty_segments',
    'TranscriptIndex',
    'TimelineController',
    'TimelineManager',
    'PlaybackController',
    'PlaybackPhase',
    'ChatLog',
    'ChatManager',
    'ProjectManager'
]
