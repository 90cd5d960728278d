"""
Configuration constants and environment-driven settings for ChatCut.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv, set_key

# Playback engine
TICK_INTERVAL_MS = 50  # Synchronizer tick while playing
DRIFT_TOLERANCE = 0.1  # Seconds the preview player may lag before it is re-seeked

# Timeline
BOUNDARY_EPSILON = 1e-3  # Boundaries closer than this are considered equal
INITIAL_SEGMENT_ID = "initial"
INITIAL_SEGMENT_DESCRIPTION = "Full Video"

# Transcript presentation
CARD_GAP_THRESHOLD = 2.0  # Silence (seconds) that splits two transcript cards
SILENCE_MIN_GAP = 0.5  # Gaps longer than this become explicit silence items

# Import
MAX_UPLOAD_BYTES = 50 * 1024 * 1024
KEYFRAME_POSITIONS = (0.0, 0.25, 0.5, 0.75)
KEYFRAME_DOWNSCALE = 4
AUDIO_SAMPLE_RATE = 16000

# Model configuration
DEFAULT_LLM_PROVIDER = "openai"  # or "anthropic"
DEFAULT_TEXT_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-3-haiku-20240307"
DEFAULT_VISION_MODEL = "gpt-4o-mini"
DEFAULT_TRANSCRIBE_MODEL = "whisper-1"
DEFAULT_TTS_MODEL = "tts-1"
DEFAULT_TTS_VOICE = "alloy"
DEFAULT_REQUEST_TIMEOUT = 120.0

DEFAULT_PROJECTS_DIR = "projects"
DEFAULT_LOG_DIR = "logs"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EditorConfig:
    """Runtime configuration for an editor session."""

    openai_api_key: Optional[str] = None
    projects_dir: str = DEFAULT_PROJECTS_DIR

    # Models
    llm_provider: str = DEFAULT_LLM_PROVIDER
    text_model: str = DEFAULT_TEXT_MODEL
    vision_model: str = DEFAULT_VISION_MODEL
    transcribe_model: str = DEFAULT_TRANSCRIBE_MODEL
    tts_model: str = DEFAULT_TTS_MODEL
    tts_voice: str = DEFAULT_TTS_VOICE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # Behaviour
    tts_enabled: bool = True
    tick_interval_ms: int = TICK_INTERVAL_MS
    drift_tolerance: float = DRIFT_TOLERANCE
    card_gap_threshold: float = CARD_GAP_THRESHOLD
    max_upload_bytes: int = MAX_UPLOAD_BYTES

    # Logging
    log_dir: str = DEFAULT_LOG_DIR
    log_file: Optional[str] = None
    verbose: bool = False


def load_config(env_path: Optional[str] = None) -> EditorConfig:
    """
    Build an EditorConfig from the environment (and a .env file if present).

    Args:
        env_path: Optional explicit .env path (defaults to python-dotenv discovery)

    Returns:
        EditorConfig instance
    """
    load_dotenv(env_path)

    return EditorConfig(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        projects_dir=os.getenv("CHATCUT_PROJECTS_DIR", DEFAULT_PROJECTS_DIR),
        llm_provider=os.getenv("CHATCUT_LLM_PROVIDER", DEFAULT_LLM_PROVIDER).lower(),
        text_model=os.getenv("CHATCUT_TEXT_MODEL", DEFAULT_TEXT_MODEL),
        vision_model=os.getenv("CHATCUT_VISION_MODEL", DEFAULT_VISION_MODEL),
        transcribe_model=os.getenv("CHATCUT_TRANSCRIBE_MODEL", DEFAULT_TRANSCRIBE_MODEL),
        tts_model=os.getenv("CHATCUT_TTS_MODEL", DEFAULT_TTS_MODEL),
        tts_voice=os.getenv("CHATCUT_TTS_VOICE", DEFAULT_TTS_VOICE),
        request_timeout=float(os.getenv("CHATCUT_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
        tts_enabled=_env_flag("CHATCUT_TTS_ENABLED", True),
        log_dir=os.getenv("CHATCUT_LOG_DIR", DEFAULT_LOG_DIR),
        log_file=os.getenv("CHATCUT_LOG_FILE") or None,
        verbose=_env_flag("CHATCUT_VERBOSE", False),
    )


def store_api_key(api_key: str, env_path: str = ".env") -> None:
    """Persist the OpenAI key to a .env file so the next session picks it up."""
    if not os.path.exists(env_path):
        open(env_path, "a").close()
    set_key(env_path, "OPENAI_API_KEY", api_key)
