"""
Data models for ChatCut.
"""

from .models import (
    ANALYSIS_STATUSES,
    CHAT_ROLES,
    TRANSCRIPT_CATEGORIES,
    ChatMessage,
    EditProposal,
    PlaybackState,
    Project,
    Segment,
    TranscriptItem,
    new_segment_id,
)

__all__ = [
    'ANALYSIS_STATUSES', 'CHAT_ROLES', 'TRANSCRIPT_CATEGORIES',
    'ChatMessage', 'EditProposal', 'PlaybackState', 'Project',
    'Segment', 'TranscriptItem', 'new_segment_id'
]
