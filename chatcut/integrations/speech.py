"""
Spoken replies: OpenAI text-to-speech played through pygame.mixer.

Speech is fire-and-forget. Nothing here raises into the editor; a
failure costs the user the audio, not the edit.
"""

import io
import os
import threading
from typing import Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame

from ..config import DEFAULT_TTS_MODEL, DEFAULT_TTS_VOICE
from ..utils.logging_utils import DualLogger, get_log_helper


class SpeechSynthesizer:
    """Synthesizes and plays assistant replies."""

    def __init__(
        self,
        client=None,
        model: str = DEFAULT_TTS_MODEL,
        voice: str = DEFAULT_TTS_VOICE,
        logger: Optional[DualLogger] = None,
        verbose: bool = False
    ):
        """
        Args:
            client: openai.OpenAI client (None disables speech)
            model: TTS model name
            voice: TTS voice name
            logger: Optional DualLogger
            verbose: Print when no logger is given
        """
        self.client = client
        self.model = model
        self.voice = voice
        self.log = get_log_helper(logger, verbose)
        self._mixer_lock = threading.Lock()

    def synthesize(self, text: str) -> Optional[bytes]:
        """Return WAV bytes for text, or None when unavailable or on failure."""
        if self.client is None or not text.strip():
            return None
        try:
            response = self.client.audio.speech.create(
                model=self.model,
                voice=self.voice,
                input=text,
                response_format="wav"
            )
            return response.content
        except Exception as e:
            self.log.warning(f"[SPEECH] Synthesis failed: {e}")
            return None

    def play(self, audio: bytes) -> None:
        """Play audio bytes on the default output device, blocking until done."""
        with self._mixer_lock:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
            sound = pygame.mixer.Sound(file=io.BytesIO(audio))
            channel = sound.play()
            clock = pygame.time.Clock()
            while channel is not None and channel.get_busy():
                clock.tick(20)

    def speak(self, text: str) -> threading.Thread:
        """Synthesize and play in a daemon thread; returns the thread."""
        thread = threading.Thread(target=self._speak_worker, args=(text,), daemon=True)
        thread.start()
        return thread

    def _speak_worker(self, text: str):
        audio = self.synthesize(text)
        if audio is None:
            return
        try:
            self.play(audio)
        except Exception as e:
            self.log.warning(f"[SPEECH] Playback failed: {e}")
