"""
Video loading and analysis functionality for ChatCut.

Produces what the editor needs before the first edit: the media duration,
a time-coded transcript (speech plus explicit silence) and a short
description of what the video shows.
"""

import base64
import io
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from moviepy import VideoFileClip
from PIL import Image

from ..config import (
    AUDIO_SAMPLE_RATE,
    DEFAULT_TRANSCRIBE_MODEL,
    DEFAULT_VISION_MODEL,
    KEYFRAME_DOWNSCALE,
    KEYFRAME_POSITIONS,
    MAX_UPLOAD_BYTES,
    SILENCE_MIN_GAP,
)
from ..errors import MediaUnavailableError, ServiceError
from ..integrations.prompts import VISUAL_ANALYSIS_FAILED, VISUAL_ANALYSIS_PROMPT
from ..models import TranscriptItem
from ..utils.logging_utils import DualLogger, get_log_helper


@dataclass
class AnalysisResult:
    """Everything analysis produces for one video."""
    duration: float
    transcript: List[TranscriptItem] = field(default_factory=list)
    visual_description: str = ""


def _field(obj: Any, name: str, default=None):
    # SDK responses are pydantic objects; cached or mocked ones may be plain dicts
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def build_transcript(
    speech: List[Any],
    duration: Optional[float] = None,
    min_gap: float = SILENCE_MIN_GAP
) -> List[TranscriptItem]:
    """
    Turn recognized speech segments into transcript items.

    Gaps longer than min_gap between speech (and at either end of the
    media when duration is known) become "[Silence]" items.

    Args:
        speech: Objects or dicts with start, end and text
        duration: Media duration in seconds, if known
        min_gap: Shortest gap reported as silence

    Returns:
        Items ordered by start with sequential ids
    """
    spans = []
    for seg in speech:
        start = float(_field(seg, "start", 0.0))
        end = float(_field(seg, "end", 0.0))
        text = str(_field(seg, "text", "") or "").strip()
        if end > start and text:
            spans.append((start, end, text))
    spans.sort()

    items: List[TranscriptItem] = []

    def add(start, end, text, category):
        items.append(TranscriptItem(id=len(items), start=start, end=end, text=text, category=category))

    cursor = 0.0
    for start, end, text in spans:
        if start - cursor > min_gap:
            add(cursor, start, "[Silence]", "silence")
        add(start, end, text, "speech")
        cursor = max(cursor, end)

    if duration is not None and duration - cursor > min_gap:
        add(cursor, duration, "[Silence]", "silence")
    return items


class VideoAnalyzer:
    """Handles video loading, transcription and visual analysis."""

    def __init__(
        self,
        client=None,
        transcribe_model: str = DEFAULT_TRANSCRIBE_MODEL,
        vision_model: str = DEFAULT_VISION_MODEL,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        logger: Optional[DualLogger] = None,
        verbose: bool = False
    ):
        """
        Initialize video analyzer.

        Args:
            client: openai.OpenAI client (None means analysis services are unavailable)
            transcribe_model: Speech-to-text model
            vision_model: Chat model used on keyframes
            max_upload_bytes: Largest accepted video file
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.client = client
        self.transcribe_model = transcribe_model
        self.vision_model = vision_model
        self.max_upload_bytes = max_upload_bytes
        self.log = get_log_helper(logger, verbose)

    def load_video(self, video_path: str) -> VideoFileClip:
        """
        Open a video with MoviePy after checking it may be analyzed.

        Raises:
            MediaUnavailableError: Missing, too large or unreadable file
        """
        if not video_path or not os.path.exists(video_path):
            raise MediaUnavailableError(f"Video file not found: {video_path}")
        size = os.path.getsize(video_path)
        if size > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes // (1024 * 1024)
            raise MediaUnavailableError(
                f"File too large ({size / (1024 * 1024):.1f} MB). Please use a video under {limit_mb} MB."
            )

        try:
            clip = VideoFileClip(video_path)
        except Exception as e:
            raise MediaUnavailableError(f"Failed to load video: {e}")

        self.log.info(f"[ANALYSIS] Video loaded: {video_path}")
        self.log.info(f"  Duration: {clip.duration:.2f}s")
        self.log.info(f"  FPS: {clip.fps}")
        self.log.info(f"  Resolution: {clip.size}")
        return clip

    def extract_audio(self, clip: VideoFileClip, output_path: str) -> Optional[str]:
        """Write the soundtrack as 16 kHz mono WAV; None when the video has no audio."""
        if clip.audio is None:
            self.log.warning("[ANALYSIS] Video has no audio track")
            return None
        clip.audio.write_audiofile(
            output_path,
            fps=AUDIO_SAMPLE_RATE,
            nbytes=2,
            codec="pcm_s16le",
            ffmpeg_params=["-ac", "1"],
            logger=None
        )
        return output_path

    def analyze(self, audio_path: str, duration: Optional[float] = None) -> List[TranscriptItem]:
        """
        Transcribe an audio file into transcript items.

        Raises:
            ServiceError: No client configured or the transcription request failed
        """
        if self.client is None:
            raise ServiceError("analysis", "No OpenAI API key configured")
        try:
            with open(audio_path, "rb") as audio_file:
                response = self.client.audio.transcriptions.create(
                    model=self.transcribe_model,
                    file=audio_file,
                    response_format="verbose_json",
                    timestamp_granularities=["segment"]
                )
        except Exception as e:
            self.log.error(f"[ANALYSIS] Transcription failed: {e}")
            raise ServiceError("analysis", f"Transcription failed: {e}", cause=e)

        items = build_transcript(_field(response, "segments", None) or [], duration)
        self.log.info(f"[ANALYSIS] Transcript ready: {len(items)} item(s)")
        return items

    def capture_keyframes(self, clip: VideoFileClip) -> List[str]:
        """Base64 JPEG frames at fixed fractions of the duration, downscaled."""
        frames = []
        duration = clip.duration or 0.0
        for position in KEYFRAME_POSITIONS:
            t = min(position * duration, max(duration - 0.05, 0.0))
            image = Image.fromarray(clip.get_frame(t))
            width, height = image.size
            image = image.resize((max(1, width // KEYFRAME_DOWNSCALE), max(1, height // KEYFRAME_DOWNSCALE)))
            buffer = io.BytesIO()
            image.convert("RGB").save(buffer, format="JPEG", quality=70)
            frames.append(base64.b64encode(buffer.getvalue()).decode("utf-8"))
        return frames

    def analyze_visual(self, frames: List[str]) -> str:
        """Describe keyframes with a vision model. Never raises."""
        if self.client is None or not frames:
            return VISUAL_ANALYSIS_FAILED

        content = [{"type": "text", "text": VISUAL_ANALYSIS_PROMPT}]
        for frame in frames:
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:image/jpeg;base64,{frame}"}
            })
        try:
            response = self.client.chat.completions.create(
                model=self.vision_model,
                messages=[{"role": "user", "content": content}],
                max_tokens=500
            )
            return response.choices[0].message.content or "No visual description available."
        except Exception as e:
            self.log.warning(f"[ANALYSIS] Visual analysis failed: {e}")
            return VISUAL_ANALYSIS_FAILED

    def analyze_media(
        self,
        video_path: str,
        on_status: Optional[Callable[[str], None]] = None
    ) -> AnalysisResult:
        """
        Run the whole analysis for a video file.

        Args:
            video_path: Path to the video
            on_status: Called with each analysis status as it is entered

        Raises:
            MediaUnavailableError: The video cannot be accepted
            ServiceError: Transcription failed
        """
        def status(value):
            if on_status:
                on_status(value)

        clip = self.load_video(video_path)
        try:
            duration = float(clip.duration)
            with tempfile.TemporaryDirectory(prefix="chatcut_") as tmp_dir:
                status("extracting_audio")
                audio_path = self.extract_audio(clip, os.path.join(tmp_dir, "audio.wav"))
                status("transcribing")
                if audio_path is None:
                    transcript = build_transcript([], duration)
                else:
                    transcript = self.analyze(audio_path, duration)

            try:
                frames = self.capture_keyframes(clip)
            except Exception as e:
                self.log.warning(f"[ANALYSIS] Keyframe capture failed: {e}")
                frames = []
            visual = self.analyze_visual(frames)
        finally:
            clip.close()

        status("ready")
        return AnalysisResult(duration=duration, transcript=transcript, visual_description=visual)
