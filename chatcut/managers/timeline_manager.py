"""
Timeline persistence for ChatCut.
"""

import os
import json
from datetime import datetime
from typing import List, Optional

from ..errors import ValidationError
from ..models import Segment
from ..utils.logging_utils import DualLogger, get_log_helper

TIMELINE_VERSION = "1.0"


class TimelineManager:
    """Handles timeline loading and saving."""

    FILENAME = "timeline.json"

    @staticmethod
    def load_timeline(project_path: Optional[str], logger: Optional[DualLogger] = None) -> List[Segment]:
        """
        Load segments from timeline.json in project folder.

        Malformed entries are skipped. The result is not checked for
        coverage here; the segment store does that when it is loaded.

        Args:
            project_path: Path to project folder
            logger: Optional DualLogger

        Returns:
            List of Segment objects (empty when missing or unreadable)
        """
        log = get_log_helper(logger, verbose=True)
        if not project_path:
            return []

        timeline_path = os.path.join(project_path, TimelineManager.FILENAME)
        if not os.path.exists(timeline_path):
            return []

        try:
            with open(timeline_path, 'r', encoding='utf-8') as f:
                content = f.read().strip()
            if not content:
                log.warning("[CHATCUT] timeline.json is empty, starting with empty timeline")
                return []

            timeline_data = json.loads(content)
            if not isinstance(timeline_data, dict):
                log.warning("[CHATCUT] timeline.json has invalid structure, starting with empty timeline")
                return []

            segments = []
            for segment_data in timeline_data.get("segments", []):
                try:
                    segments.append(Segment.from_dict(segment_data))
                except ValidationError as e:
                    log.warning(f"[CHATCUT] Skipping invalid timeline entry: {e}")

            log.debug(f"[CHATCUT] Loaded {len(segments)} segments from timeline.json")
            return segments

        except json.JSONDecodeError:
            log.warning("[CHATCUT] timeline.json contains invalid JSON, starting with empty timeline")
            return []
        except OSError as e:
            log.warning(f"[CHATCUT] Failed to load timeline: {e}")
            return []

    @staticmethod
    def save_timeline(
        project_path: Optional[str],
        segments: List[Segment],
        sequence_name: str = "Main Sequence",
        created_at: Optional[str] = None
    ) -> None:
        """
        Save segments to timeline.json in project folder.

        Args:
            project_path: Path to project folder
            segments: Segments to save, in timeline order
            sequence_name: Display name of the edit sequence
            created_at: Original creation timestamp to preserve
        """
        if not project_path:
            return

        timeline_path = os.path.join(project_path, TimelineManager.FILENAME)
        now = datetime.now().isoformat()
        timeline_data = {
            "version": TIMELINE_VERSION,
            "sequence_name": sequence_name,
            "created_at": created_at or now,
            "updated_at": now,
            "segments": [seg.to_dict() for seg in segments]
        }

        with open(timeline_path, 'w', encoding='utf-8') as f:
            json.dump(timeline_data, f, indent=2)
