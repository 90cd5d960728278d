"""
Edit-proposal service: turns a chat instruction into a replacement timeline.
"""

import json
from typing import Optional, Sequence

from ..errors import ServiceError, ValidationError
from ..managers.transcript_index import TranscriptIndex
from ..models import EditProposal, Segment, TranscriptItem
from ..utils.llm_utils import invoke_llm_with_json
from ..utils.logging_utils import DualLogger, get_log_helper
from .prompts import EDIT_SYSTEM_PROMPT, EDIT_USER_PROMPT, NO_VISUAL_CONTEXT


def format_transcript(transcript: Sequence[TranscriptItem]) -> str:
    return "\n".join(TranscriptIndex(transcript).to_prompt_lines())


def format_segments(segments: Sequence[Segment]) -> str:
    return json.dumps([
        {"id": s.id, "start": s.start, "end": s.end, "active": s.active, "desc": s.description}
        for s in segments
    ])


class EditService:
    """Asks a LangChain chat model for an edited timeline. No retry: failures go back to the user."""

    def __init__(self, llm, logger: Optional[DualLogger] = None, verbose: bool = False):
        """
        Args:
            llm: LangChain chat model (ChatOpenAI, ChatAnthropic, ...)
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.llm = llm
        self.verbose = verbose
        self.log = get_log_helper(logger, verbose)

    def propose_edit(
        self,
        transcript: Sequence[TranscriptItem],
        segments: Sequence[Segment],
        instruction: str,
        visual_context: Optional[str] = None,
        duration: Optional[float] = None
    ) -> EditProposal:
        """
        Request a new timeline for an instruction.

        Args:
            transcript: Transcript items
            segments: Current timeline
            instruction: User's chat message
            visual_context: Keyframe description, if any
            duration: Media duration (defaults to the end of the last segment)

        Returns:
            EditProposal with an unvalidated list of segment records

        Raises:
            ServiceError: The model could not be reached or returned no JSON
            ValidationError: The JSON lacks a string reply or a segment list
        """
        if self.llm is None:
            raise ServiceError("edit", "No language model configured (set OPENAI_API_KEY)")
        if duration is None:
            duration = max((s.end for s in segments), default=0.0)

        system_prompt = EDIT_SYSTEM_PROMPT.format(duration=duration)
        user_message = EDIT_USER_PROMPT.format(
            visual_context=visual_context or NO_VISUAL_CONTEXT,
            transcript=format_transcript(transcript),
            segments=format_segments(segments),
            instruction=instruction
        )

        self.log.info(f"[EDIT] Requesting edit: {instruction}")
        try:
            data = invoke_llm_with_json(self.llm, system_prompt, user_message, verbose=self.verbose)
        except ValueError as e:
            raise ServiceError("edit", f"Model returned no usable JSON: {e}", cause=e)
        except Exception as e:
            # transport errors from the provider SDKs have no common base class
            self.log.error(f"[EDIT] Request failed: {e}")
            raise ServiceError("edit", str(e), cause=e)

        return self._to_proposal(data)

    @staticmethod
    def _to_proposal(data) -> EditProposal:
        if not isinstance(data, dict):
            raise ValidationError("Edit response must be a JSON object")
        reply = data.get("reply")
        edited = data.get("editedSegments", data.get("edited_segments"))
        if not isinstance(reply, str):
            raise ValidationError("Edit response has no 'reply' text")
        if not isinstance(edited, list):
            raise ValidationError("Edit response has no 'editedSegments' list")
        return EditProposal(reply=reply, edited_segments=edited)
