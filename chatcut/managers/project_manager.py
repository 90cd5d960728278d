"""
Project management functionality for ChatCut.

Each project lives in its own folder under projects_dir:

    <id>/project_config.json   metadata (name, dates, media path, duration)
    <id>/timeline.json         segments
    <id>/transcript.json       transcript items
    <id>/chat_history.json     chat log
    <id>/video/                imported source media
"""

import os
import json
import shutil
import time
import uuid
from typing import List, Optional

from ..errors import ValidationError
from ..models import Project, TranscriptItem
from ..utils.logging_utils import DualLogger, get_log_helper
from .chat_manager import ChatManager
from .timeline_manager import TimelineManager

CONFIG_FILENAME = "project_config.json"
TRANSCRIPT_FILENAME = "transcript.json"


class ProjectManager:
    """Handles project creation, loading, listing and deletion."""

    def __init__(self, projects_dir: str, logger: Optional[DualLogger] = None, verbose: bool = False):
        """
        Initialize project manager.

        Args:
            projects_dir: Base directory for projects
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.projects_dir = projects_dir
        self.logger = logger
        self.log = get_log_helper(logger, verbose)
        self._ensure_projects_dir()

    def _ensure_projects_dir(self):
        """Ensure projects directory exists."""
        os.makedirs(self.projects_dir, exist_ok=True)

    def project_path(self, project_id: str) -> str:
        """Folder of a project; the id must name a direct child of the projects directory."""
        separators = [s for s in (os.sep, os.altsep, "/", "\\") if s]
        if (not project_id or project_id in (".", "..")
                or any(s in project_id for s in separators)):
            raise ValueError(f"Invalid project id: {project_id!r}")
        return os.path.join(self.projects_dir, project_id)

    def exists(self, project_id: str) -> bool:
        return os.path.exists(os.path.join(self.project_path(project_id), CONFIG_FILENAME))

    def create_project(self, name: str = "Untitled Project") -> Project:
        """
        Create a new, empty project on disk.

        Args:
            name: Display name of the project

        Returns:
            The created Project
        """
        name = name.strip() or "Untitled Project"
        project = Project(id=uuid.uuid4().hex[:12], name=name)
        os.makedirs(os.path.join(self.project_path(project.id), "video"))
        self.save(project)
        self.log.info(f"[CHATCUT] Created project '{name}' ({project.id})")
        return project

    def import_video(self, project: Project, video_path: str) -> str:
        """
        Copy a video into the project folder and point the project at it.

        Returns:
            Path to the copied video
        """
        if not os.path.exists(video_path):
            raise FileNotFoundError(f"Video file not found: {video_path}")

        video_dir = os.path.join(self.project_path(project.id), "video")
        os.makedirs(video_dir, exist_ok=True)
        dest_path = os.path.join(video_dir, os.path.basename(video_path))
        if os.path.abspath(video_path) != os.path.abspath(dest_path):
            shutil.copy2(video_path, dest_path)
            self.log.info(f"[CHATCUT] Copied video to project: {dest_path}")
        project.video_path = dest_path
        return dest_path

    def save(self, project: Project) -> None:
        """Write all project files, bumping last_modified."""
        project_path = self.project_path(project.id)
        os.makedirs(project_path, exist_ok=True)
        project.last_modified = time.time()

        with open(os.path.join(project_path, CONFIG_FILENAME), 'w', encoding='utf-8') as f:
            json.dump(project.config_dict(), f, indent=2)
        with open(os.path.join(project_path, TRANSCRIPT_FILENAME), 'w', encoding='utf-8') as f:
            json.dump([item.to_dict() for item in project.transcript], f, indent=2)
        TimelineManager.save_timeline(project_path, project.segments, sequence_name=project.sequence_name,
                                      created_at=project.created_at)
        ChatManager.save_chat_history(project_path, project.messages)
        self.log.debug(f"[CHATCUT] Saved project {project.id}")

    def load(self, project_id: str) -> Project:
        """
        Load a project by id.

        Raises:
            ValueError: The project does not exist or its config is unreadable
        """
        project_path = self.project_path(project_id)
        config = self._read_config(project_path)
        if config is None:
            raise ValueError(f"Project '{project_id}' not found")

        project = self._project_from_config(project_id, config)
        project.transcript = self._load_transcript(project_path)
        project.segments = TimelineManager.load_timeline(project_path, logger=self.logger)
        project.messages = ChatManager.load_chat_history(project_path, logger=self.logger)
        return project

    def list(self) -> List[Project]:
        """Projects (metadata only), most recently modified first."""
        if not os.path.exists(self.projects_dir):
            return []

        projects = []
        for item in os.listdir(self.projects_dir):
            project_path = os.path.join(self.projects_dir, item)
            if not os.path.isdir(project_path):
                continue
            config = self._read_config(project_path)
            if config is not None:
                projects.append(self._project_from_config(item, config))
        return sorted(projects, key=lambda p: p.last_modified, reverse=True)

    def rename(self, project_id: str, name: str) -> Project:
        project = self.load(project_id)
        project.name = name.strip() or project.name
        self.save(project)
        return project

    def delete(self, project_id: str) -> None:
        """Remove a project folder and everything in it."""
        if not self.exists(project_id):
            raise ValueError(f"Project '{project_id}' not found")
        shutil.rmtree(self.project_path(project_id))
        self.log.info(f"[CHATCUT] Deleted project {project_id}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _read_config(self, project_path: str) -> Optional[dict]:
        config_path = os.path.join(project_path, CONFIG_FILENAME)
        if not os.path.exists(config_path):
            return None
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.log.warning(f"[CHATCUT] Unreadable project config {config_path}: {e}")
            return None
        return config if isinstance(config, dict) else None

    @staticmethod
    def _project_from_config(project_id: str, config: dict) -> Project:
        def number(key):
            value = config.get(key)
            return float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else 0.0

        project = Project(id=project_id)
        project.name = config.get("project_name") or project.name
        project.created_at = config.get("created_at") or project.created_at
        project.last_modified = number("last_modified")
        project.video_path = config.get("video_path")
        project.duration = number("duration")
        project.visual_description = config.get("visual_description") or ""
        project.sequence_name = config.get("sequence_name") or project.sequence_name
        return project

    def _load_transcript(self, project_path: str) -> List[TranscriptItem]:
        transcript_path = os.path.join(project_path, TRANSCRIPT_FILENAME)
        if not os.path.exists(transcript_path):
            return []
        try:
            with open(transcript_path, 'r', encoding='utf-8') as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.log.warning(f"[CHATCUT] transcript.json unreadable, starting with empty transcript: {e}")
            return []
        if not isinstance(records, list):
            self.log.warning("[CHATCUT] transcript.json has invalid structure, starting with empty transcript")
            return []

        items = []
        for record in records:
            try:
                items.append(TranscriptItem.from_dict(record))
            except ValidationError as e:
                self.log.warning(f"[CHATCUT] Skipping invalid transcript item: {e}")
        return items
