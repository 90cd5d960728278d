"""
Editor session: the process-wide context that owns one open project.

The session wires the segment store, transcript, chat and playback state
to the controllers and external services, and is the single place where
project switches invalidate in-flight work (via the generation counter).
"""

import os
import threading
from pathlib import Path
from typing import Callable, List, Optional

from openai import OpenAI

from ..analyzers.video_analyzer import AnalysisResult, VideoAnalyzer
from ..config import DEFAULT_ANTHROPIC_MODEL, DEFAULT_TEXT_MODEL, EditorConfig, load_config, store_api_key
from ..errors import ChatCutError, MediaUnavailableError, ServiceError, ValidationError
from ..export import VideoExporter
from ..integrations.edit_reconciler import EditReconciler, ReconcileResult
from ..integrations.edit_service import EditService
from ..integrations.speech import SpeechSynthesizer
from ..managers import (
    ChatLog,
    PlaybackController,
    ProjectManager,
    SegmentStore,
    TimelineController,
    TranscriptIndex,
)
from ..models import PlaybackState, Project
from ..ui.transcript_view import TimelineView, card_view, continuous_view, timeline_view
from ..utils.llm_utils import create_llm
from ..utils.logging_utils import DualLogger, get_log_helper
from .player import ClockPlayer
from .scheduler import LoopScheduler

ANALYSIS_ERROR_MESSAGE = "Error during analysis. Please check your API key."


class ServiceClients:
    """Holds the OpenAI client and LangChain model; rebuilt whenever the API key changes."""

    def __init__(self, config: EditorConfig, logger: Optional[DualLogger] = None):
        self.config = config
        self.log = get_log_helper(logger, config.verbose)
        self.openai: Optional[OpenAI] = None
        self.llm = None
        self.analyzer = VideoAnalyzer(
            transcribe_model=config.transcribe_model,
            vision_model=config.vision_model,
            max_upload_bytes=config.max_upload_bytes,
            logger=logger,
            verbose=config.verbose
        )
        self.edit_service = EditService(None, logger=logger, verbose=config.verbose)
        self.speech = SpeechSynthesizer(model=config.tts_model, voice=config.tts_voice, logger=logger)
        self.configure(config.openai_api_key)

    @property
    def has_key(self) -> bool:
        return self.openai is not None

    def configure(self, api_key: Optional[str]):
        """Rebuild clients for a new key (None disables the OpenAI services)."""
        self.config.openai_api_key = api_key or None
        if api_key:
            self.openai = OpenAI(api_key=api_key, timeout=self.config.request_timeout)
        else:
            self.openai = None
        self.llm = self._build_llm(api_key)

        self.analyzer.client = self.openai
        self.edit_service.llm = self.llm
        self.speech.client = self.openai

    def update_api_key(self, api_key: str, persist: bool = False, env_path: str = ".env"):
        self.configure(api_key)
        if persist:
            store_api_key(api_key, env_path)
            self.log.info(f"[CHATCUT] API key saved to {env_path}")

    def _build_llm(self, api_key: Optional[str]):
        provider = self.config.llm_provider
        if provider == "openai":
            if not api_key:
                return None
            return create_llm("openai", self.config.text_model, api_key=api_key,
                              timeout=self.config.request_timeout)

        model = self.config.text_model
        if model == DEFAULT_TEXT_MODEL:
            model = DEFAULT_ANTHROPIC_MODEL
        try:
            return create_llm(provider, model, timeout=self.config.request_timeout)
        except ValueError:
            raise
        except Exception as e:
            # ChatAnthropic refuses to build without ANTHROPIC_API_KEY
            self.log.warning(f"[CHATCUT] Could not create {provider} model: {e}")
            return None


class EditorSession:
    """One open project plus everything needed to edit it."""

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        scheduler=None,
        player=None,
        preview=None,
        project_manager: Optional[ProjectManager] = None,
        analyzer=None,
        edit_service=None,
        speech=None,
        exporter: Optional[VideoExporter] = None,
        logger: Optional[DualLogger] = None
    ):
        """
        Initialize the session.

        Args:
            config: Editor configuration (defaults to load_config())
            scheduler: tkinter root or LoopScheduler (defaults to a LoopScheduler)
            player: Source MediaPlayer (defaults to a ClockPlayer)
            preview: Optional MediaPlayer showing the edited result
            project_manager: Persistent project store
            analyzer: Overrides the OpenAI-backed VideoAnalyzer
            edit_service: Overrides the LangChain-backed EditService
            speech: Overrides the SpeechSynthesizer
            exporter: Overrides the MoviePy VideoExporter
            logger: Optional DualLogger
        """
        self.config = config or load_config()
        self.logger = logger
        self.log = get_log_helper(logger, self.config.verbose)

        self.clients = ServiceClients(self.config, logger)
        self.analyzer = analyzer or self.clients.analyzer
        self.edit_service = edit_service or self.clients.edit_service
        self.speech = speech or self.clients.speech
        self.exporter = exporter or VideoExporter(logger=logger, verbose=self.config.verbose)
        self.projects = project_manager or ProjectManager(self.config.projects_dir, logger=logger,
                                                          verbose=self.config.verbose)

        self.scheduler = scheduler or LoopScheduler(logger=logger)
        self.player = player or ClockPlayer()
        self.preview = preview

        self.generation = 0
        self.project: Optional[Project] = None
        self.analysis_status = "idle"
        self.status_text = ""
        self.visual_description = ""

        self.store = SegmentStore(logger=logger, verbose=self.config.verbose)
        self.transcript = TranscriptIndex()
        self.chat = ChatLog()
        self.state = PlaybackState()

        self.playback = PlaybackController(
            self.store, self.player, self.state, self.scheduler,
            preview=preview,
            tick_interval=self.config.tick_interval_ms / 1000.0,
            drift_tolerance=self.config.drift_tolerance,
            logger=logger,
            verbose=self.config.verbose
        )
        self.timeline = TimelineController(self.store, self.playback, logger=logger, verbose=self.config.verbose)
        self.reconciler = EditReconciler(
            self.store, self.chat, self.edit_service,
            playback=self.playback,
            timeline=self.timeline,
            scheduler=self.scheduler,
            speech=self.speech,
            generation=lambda: self.generation,
            tts_enabled=self.config.tts_enabled,
            logger=logger,
            verbose=self.config.verbose
        )
        self._import_thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def set_tts_enabled(self, enabled: bool):
        self.config.tts_enabled = bool(enabled)
        self.reconciler.tts_enabled = self.config.tts_enabled

    def update_api_key(self, api_key: str, persist: bool = False):
        self.clients.update_api_key(api_key, persist=persist)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def reset(self):
        """Clear the editor and invalidate any analysis or edit still running."""
        self.generation += 1
        self.playback.pause()
        self.timeline.cancel_drag()
        self.reconciler.reset()
        self.store.clear()
        self.player.load(None, 0.0)
        self.transcript = TranscriptIndex()
        self.chat.reset()
        self.state.current_time = 0.0
        self.state.is_playing = False
        self.analysis_status = "idle"
        self.visual_description = ""
        self.status_text = ""

    def new_project(self, name: str = "Untitled Project") -> Project:
        self.reset()
        self.project = self.projects.create_project(name)
        return self.project

    def select_project(self, project_id: str) -> Project:
        if self.project is not None and self.project.id == project_id:
            return self.project
        project = self.projects.load(project_id)
        self.reset()
        self.project = project
        self._restore(project)
        return project

    def delete_project(self, project_id: str):
        self.projects.delete(project_id)
        if self.project is not None and self.project.id == project_id:
            self.reset()
            self.project = None

    def rename_project(self, name: str):
        project = self._require_project()
        project.name = name.strip() or project.name
        self.save_project()

    def save_project(self):
        """Write the current editor state into the project and persist it."""
        project = self._require_project()
        project.duration = self.store.duration
        project.segments = list(self.store.segments)
        project.transcript = list(self.transcript.items)
        project.messages = self.chat.messages
        project.visual_description = self.visual_description
        self.projects.save(project)

    def _restore(self, project: Project):
        self.transcript = TranscriptIndex(project.transcript)
        self.chat.reset(project.messages)
        self.visual_description = project.visual_description
        if project.duration <= 0:
            return

        if project.segments:
            try:
                self.store.load(project.duration, project.segments)
            except ValidationError as e:
                self.log.warning(f"[CHATCUT] Saved timeline is invalid ({e}); starting from the full video")
                self.store.initialize(project.duration)
        else:
            self.store.initialize(project.duration)
        self.player.load(project.video_path, project.duration)
        self.analysis_status = "ready"

    def _require_project(self) -> Project:
        if self.project is None:
            raise ChatCutError("No project is open")
        return self.project

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------
    def import_media(self, video_path: str) -> AnalysisResult:
        """
        Import and analyze a video on the calling thread.

        Raises:
            MediaUnavailableError: The file cannot be used
            ServiceError: Analysis failed
        """
        generation = self._begin_import(video_path)
        try:
            result = self.analyzer.analyze_media(self.project.video_path, on_status=self._set_analysis_status)
        except ChatCutError as e:
            self._fail_import(generation, e)
            raise
        except Exception as e:
            # MoviePy/ffmpeg failures surface as OSError, RuntimeError and friends
            error = ServiceError("analysis", str(e), cause=e)
            self._fail_import(generation, error)
            raise error from e
        self._apply_analysis(generation, result)
        return result

    def import_media_async(
        self,
        video_path: str,
        on_done: Optional[Callable[[Optional[AnalysisResult], Optional[Exception]], None]] = None
    ) -> threading.Thread:
        """Import in a worker thread; results are applied on the scheduler's thread."""
        generation = self._begin_import(video_path)
        source = self.project.video_path

        def status(value):
            self.scheduler.after(0, self._set_analysis_status, value, generation)

        def _run_import_thread():
            try:
                result = self.analyzer.analyze_media(source, on_status=status)
            except Exception as e:
                self.scheduler.after(0, self._finish_import, generation, None, e, on_done)
                return
            self.scheduler.after(0, self._finish_import, generation, result, None, on_done)

        self._import_thread = threading.Thread(target=_run_import_thread, daemon=True)
        self._import_thread.start()
        return self._import_thread

    def _begin_import(self, video_path: str) -> int:
        if not os.path.exists(video_path):
            raise MediaUnavailableError(f"Video file not found: {video_path}")
        if self.project is None:
            self.new_project()
        else:
            self.reset()
        project = self.project
        if project.name == "Untitled Project":
            project.name = Path(video_path).stem
        self.projects.import_video(project, video_path)
        self.analysis_status = "extracting_audio"
        self.chat.append("model", f'Analyzing "{os.path.basename(video_path)}"...')
        return self.generation

    def _set_analysis_status(self, value: str, generation: Optional[int] = None):
        if generation is not None and generation != self.generation:
            return
        self.analysis_status = value
        self.status_text = value.replace("_", " ").capitalize()

    def _finish_import(self, generation: int, result: Optional[AnalysisResult],
                       error: Optional[Exception], on_done):
        if error is not None:
            self._fail_import(generation, error)
        else:
            self._apply_analysis(generation, result)
        if on_done:
            on_done(result, error)

    def _fail_import(self, generation: int, error: Exception):
        if generation != self.generation:
            return
        self.log.error(f"[CHATCUT] Analysis failed: {error}")
        self.analysis_status = "error"
        self.status_text = str(error)
        self.chat.append("model", ANALYSIS_ERROR_MESSAGE)

    def _apply_analysis(self, generation: int, result: AnalysisResult):
        if generation != self.generation:
            self.log.info("[CHATCUT] Dropping analysis result from a previous project")
            return
        self.store.initialize(result.duration)
        self.transcript = TranscriptIndex(result.transcript)
        self.visual_description = result.visual_description
        self.player.load(self.project.video_path, result.duration)
        self.state.current_time = 0.0
        self.analysis_status = "ready"
        self.status_text = "Ready"

        preview = result.visual_description[:100]
        self.chat.append(
            "model",
            f"I've analyzed the video content.\n\nVisuals: {preview}...\n\n"
            f"I'm ready to edit based on the transcript."
        )
        if self.config.tts_enabled and self.speech is not None:
            self.speech.speak("Video analysis complete.")
        self.save_project()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def _check_ready(self):
        if self.analysis_status != "ready" or self.store.is_empty:
            raise MediaUnavailableError("Import a video and wait for analysis before editing")

    def send_instruction(self, instruction: str,
                         on_done: Optional[Callable[[ReconcileResult], None]] = None) -> bool:
        """Queue an edit request; False when another request or a drag is in progress."""
        self._check_ready()

        def _done(result: ReconcileResult):
            if result.applied and self.project is not None:
                self.save_project()
            if on_done:
                on_done(result)

        return self.reconciler.submit(instruction, self.transcript.items, self.visual_description, on_done=_done)

    def apply_instruction(self, instruction: str) -> ReconcileResult:
        """Blocking edit request."""
        self._check_ready()
        result = self.reconciler.request_edit(instruction, self.transcript.items, self.visual_description)
        if self.project is not None:
            self.save_project()
        return result

    def toggle_segment(self, segment_id: str):
        """Keep or cut one segment; refused while an edit request or a drag owns the timeline."""
        if self.reconciler.is_pending or self.timeline.is_locked or self.timeline.is_dragging:
            raise ChatCutError("The timeline is busy; wait for the current edit to finish")
        segment = self.store.toggle(segment_id)
        if self.project is not None:
            self.save_project()
        return segment

    def export(self, output_path: str) -> str:
        self._check_ready()
        return self.exporter.export_video(self.project.video_path, self.store.segments, output_path)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def transcript_lines(self):
        return continuous_view(self.transcript.items, self.state.current_time)

    def transcript_cards(self):
        return card_view(self.transcript, self.store.segments, self.state.current_time,
                         self.config.card_gap_threshold)

    def timeline_view(self) -> TimelineView:
        return timeline_view(self.store.segments, self.store.duration, self.state.current_time)

    def projects_list(self) -> List[Project]:
        return self.projects.list()
