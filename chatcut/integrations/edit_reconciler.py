"""
Applies edit proposals from the assistant to the segment timeline.

A proposal is all-or-nothing: it is parsed and validated as a whole and
either replaces the timeline atomically or leaves it untouched. The
assistant's reply reaches the chat either way.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..errors import ChatCutError, ServiceError, ValidationError
from ..models import EditProposal, Segment, TranscriptItem
from ..utils.logging_utils import DualLogger, get_log_helper


@dataclass
class ReconcileResult:
    """Outcome of one edit request."""
    applied: bool
    reply: str = ""
    error: Optional[str] = None
    stale: bool = False


class EditReconciler:
    """Handles chat instructions, edit proposals and the resulting timeline swap."""

    def __init__(
        self,
        store,
        chat,
        edit_service,
        playback=None,
        timeline=None,
        scheduler=None,
        speech=None,
        generation: Callable[[], int] = lambda: 0,
        tts_enabled: bool = True,
        logger: Optional[DualLogger] = None,
        verbose: bool = False
    ):
        """
        Initialize the reconciler.

        Args:
            store: SegmentStore to replace
            chat: ChatLog receiving user and assistant messages
            edit_service: Object with propose_edit(transcript, segments, instruction, visual_context, duration)
            playback: Optional PlaybackController; seeks to the first kept segment after an edit
            timeline: Optional TimelineController; locked while a request is pending
            scheduler: Object with after(); required for submit()
            speech: Optional SpeechSynthesizer for spoken replies
            generation: Returns the session generation; results from older generations are dropped
            tts_enabled: Speak replies when a synthesizer is present
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.store = store
        self.chat = chat
        self.edit_service = edit_service
        self.playback = playback
        self.timeline = timeline
        self.scheduler = scheduler
        self.speech = speech
        self.generation = generation
        self.tts_enabled = tts_enabled
        self.log = get_log_helper(logger, verbose)

        self._pending = False
        self.worker_thread: Optional[threading.Thread] = None

    @property
    def is_pending(self) -> bool:
        return self._pending

    # ------------------------------------------------------------------
    # Proposal application
    # ------------------------------------------------------------------
    def reconcile(self, proposal: EditProposal, generation: Optional[int] = None) -> ReconcileResult:
        """
        Apply a proposal to the store.

        Args:
            proposal: Reply plus unvalidated segment records
            generation: Session generation the request was started under

        Returns:
            ReconcileResult; applied is False when the proposal was invalid or stale
        """
        if generation is not None and generation != self.generation():
            self.log.info("[EDIT] Dropping edit result from a previous project")
            return ReconcileResult(applied=False, reply=proposal.reply, stale=True)

        error = None
        try:
            candidate = sorted(
                (Segment.from_dict(record) for record in proposal.edited_segments),
                key=lambda s: s.start
            )
            self.store.replace_all(candidate)
        except ValidationError as e:
            error = str(e)
            self.log.warning(f"[EDIT] Proposal rejected ({e.rule}): {e}")

        self.chat.append("model", proposal.reply)
        if error is not None:
            self.chat.append("model", f"I couldn't apply that edit: {error}")
        else:
            self.log.info(f"[EDIT] Applied proposal with {len(self.store)} segment(s)")
            first = self.store.first_active()
            if first is not None and self.playback is not None:
                self.playback.seek(first.start)

        if self.speech is not None and self.tts_enabled:
            self.speech.speak(proposal.reply)

        return ReconcileResult(applied=error is None, reply=proposal.reply, error=error)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def request_edit(
        self,
        instruction: str,
        transcript: Sequence[TranscriptItem],
        visual_context: Optional[str] = None
    ) -> ReconcileResult:
        """Blocking path: ask the service and apply its proposal on this thread."""
        if self.store.is_empty:
            raise ChatCutError("Import a video before editing")
        self.chat.append("user", instruction)
        try:
            proposal = self._propose(instruction, transcript, visual_context)
        except ChatCutError as e:
            return self._report_failure(e)
        return self.reconcile(proposal)

    def submit(
        self,
        instruction: str,
        transcript: Sequence[TranscriptItem],
        visual_context: Optional[str] = None,
        on_done: Optional[Callable[[ReconcileResult], None]] = None
    ) -> bool:
        """
        Asynchronous path: run the service call in a worker thread.

        The result is applied on the scheduler's thread. Returns False,
        without queueing anything, while another request is pending or a
        boundary drag is in progress.
        """
        if self.scheduler is None:
            raise RuntimeError("submit() needs a scheduler")
        if self._pending:
            self.log.warning("[EDIT] An edit is already being processed")
            return False
        if self.timeline is not None and self.timeline.is_dragging:
            self.log.warning("[EDIT] Finish dragging before sending an edit")
            return False
        if self.store.is_empty:
            raise ChatCutError("Import a video before editing")

        self._pending = True
        if self.timeline is not None:
            self.timeline.lock()
        self.chat.append("user", instruction)

        generation = self.generation()
        segments = list(self.store.segments)
        duration = self.store.duration
        transcript = list(transcript)

        def _run_edit_thread():
            try:
                proposal = self.edit_service.propose_edit(
                    transcript, segments, instruction, visual_context, duration=duration
                )
                self.scheduler.after(0, self._finish, generation, proposal, None, on_done)
            except Exception as e:
                if not isinstance(e, ChatCutError):
                    e = ServiceError("edit", str(e), cause=e)
                self.scheduler.after(0, self._finish, generation, None, e, on_done)

        self.worker_thread = threading.Thread(target=_run_edit_thread, daemon=True)
        self.worker_thread.start()
        return True

    def reset(self):
        """Forget an in-flight request (project switch); its result will be dropped as stale."""
        if self._pending:
            self.log.info("[EDIT] Abandoning pending edit request")
        self._pending = False
        if self.timeline is not None:
            self.timeline.unlock()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _propose(self, instruction, transcript, visual_context) -> EditProposal:
        return self.edit_service.propose_edit(
            list(transcript), list(self.store.segments), instruction, visual_context,
            duration=self.store.duration
        )

    def _finish(self, generation: int, proposal: Optional[EditProposal],
                error: Optional[ChatCutError], on_done):
        if generation != self.generation():
            # reset() already released the lock; a newer request may hold it now
            self.log.info("[EDIT] Dropping edit result from a previous project")
            if on_done:
                on_done(ReconcileResult(applied=False, reply=proposal.reply if proposal else "", stale=True))
            return

        self._pending = False
        if self.timeline is not None:
            self.timeline.unlock()

        if error is not None:
            result = self._report_failure(error)
        else:
            result = self.reconcile(proposal, generation)

        if on_done:
            on_done(result)

    def _report_failure(self, error: ChatCutError) -> ReconcileResult:
        if isinstance(error, ServiceError):
            self.log.error(f"[EDIT] Edit service failed: {error}")
        else:
            self.log.warning(f"[EDIT] Edit response rejected: {error}")
        text = "Sorry, I encountered an error processing your request."
        self.chat.append("model", text)
        return ReconcileResult(applied=False, reply=text, error=str(error))
