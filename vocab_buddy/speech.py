"""
Speech capabilities for the listening and speaking tests.

Playback and capture depend on the machine (audio output, a microphone,
PortAudio, an OpenAI key), so they are probed once at startup by
detect_speech_capabilities() and handed to the workflow as objects. Every
capability has a supported and an unsupported variant; the unsupported one
raises UnsupportedCapability, which the UI shows as a notice.

Supported variants:
- OpenAISynthesizer: OpenAI TTS, played with pygame in a background thread
- MicrophoneRecognizer: sounddevice capture, WAV via soundfile, Whisper
"""

import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from . import api
from .config import Settings, settings as default_settings
from .errors import NetworkError, UnsupportedCapability
from .logger import logger

SAMPLE_RATE = 16000
PLAYBACK_POLL_MS = 200


class SpeechSynthesizer(ABC):
    supported = True

    @abstractmethod
    def speak(self, text: str, language_code: str) -> None:
        """Start speaking ``text``; returns without waiting for playback."""


class SpeechRecognizer(ABC):
    supported = True

    @abstractmethod
    def recognize(self, language_code: str) -> str:
        """Capture one utterance and return its transcript."""


class UnsupportedSynthesizer(SpeechSynthesizer):
    supported = False

    def __init__(self, reason: str = ""):
        self.reason = reason

    def speak(self, text: str, language_code: str) -> None:
        raise UnsupportedCapability("Speech synthesis", self.reason)


class UnsupportedRecognizer(SpeechRecognizer):
    supported = False

    def __init__(self, reason: str = ""):
        self.reason = reason

    def recognize(self, language_code: str) -> str:
        raise UnsupportedCapability("Speech recognition", self.reason)


class OpenAISynthesizer(SpeechSynthesizer):
    def __init__(self, pygame):
        self.pygame = pygame

    def _play(self, text: str, language_code: str) -> None:
        path = api.generate_speech(text, language_code)
        if not path:
            logger.warning("No audio generated, nothing to play")
            return
        try:
            self.pygame.mixer.music.load(path)
            self.pygame.mixer.music.play()
            while self.pygame.mixer.music.get_busy():
                self.pygame.time.wait(PLAYBACK_POLL_MS)
            # release the file so it can be removed
            self.pygame.mixer.music.unload()
        except self.pygame.error as e:
            logger.error(f"Audio playback failed: {e}")
        finally:
            os.remove(path)

    def speak(self, text: str, language_code: str) -> None:
        logger.speech(f"Speaking '{text}' ({language_code})")
        thread = threading.Thread(target=self._play, args=(text, language_code), daemon=True)
        thread.start()


class MicrophoneRecognizer(SpeechRecognizer):
    def __init__(self, sounddevice, soundfile, seconds: float):
        self.sd = sounddevice
        self.sf = soundfile
        self.seconds = seconds

    def recognize(self, language_code: str) -> str:
        logger.speech(f"Recording {self.seconds:.0f}s of audio ({language_code})")
        try:
            recording = self.sd.rec(
                int(self.seconds * SAMPLE_RATE), samplerate=SAMPLE_RATE, channels=1, dtype="int16"
            )
            self.sd.wait()
        except self.sd.PortAudioError as e:
            raise UnsupportedCapability("Speech recognition", f"audio device error: {e}") from e

        fd, path = tempfile.mkstemp(suffix=".wav", prefix="vocab_answer_")
        os.close(fd)
        try:
            try:
                self.sf.write(path, recording, SAMPLE_RATE)
            except (RuntimeError, OSError) as e:
                # soundfile.LibsndfileError is a RuntimeError
                raise UnsupportedCapability("Speech recognition", f"could not save the recording: {e}") from e
            transcript = api.transcribe_audio(path, language_code)
        finally:
            os.remove(path)

        if transcript is None:
            raise NetworkError("Could not transcribe the recording")
        return transcript


@dataclass
class SpeechCapabilities:
    synthesizer: SpeechSynthesizer
    recognizer: SpeechRecognizer

    @classmethod
    def unsupported(cls, reason: str) -> "SpeechCapabilities":
        return cls(UnsupportedSynthesizer(reason), UnsupportedRecognizer(reason))


def _detect_synthesizer() -> SpeechSynthesizer:
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
    try:
        import pygame
    except ImportError as e:
        logger.warning(f"pygame not installed, audio playback disabled: {e}")
        return UnsupportedSynthesizer("pygame not installed. Install with: pip install pygame")

    try:
        pygame.mixer.init()
    except pygame.error as e:
        logger.warning(f"Audio output unavailable: {e}")
        return UnsupportedSynthesizer(f"no audio output ({e})")
    return OpenAISynthesizer(pygame)


def _detect_recognizer(config: Settings) -> SpeechRecognizer:
    try:
        # sounddevice and soundfile load PortAudio and libsndfile at import time
        import sounddevice as sd
        import soundfile as sf
    except ImportError as e:
        logger.warning(f"Recording packages missing: {e}")
        return UnsupportedRecognizer(f"missing packages ({e}). Install with: pip install sounddevice soundfile")
    except OSError as e:
        logger.warning(f"Audio library not available: {e}")
        return UnsupportedRecognizer(f"audio library not found ({e})")

    try:
        devices = sd.query_devices()
    except sd.PortAudioError as e:
        return UnsupportedRecognizer(f"audio device error: {e}")

    inputs = [d for d in devices if d["max_input_channels"] > 0]
    if not inputs:
        return UnsupportedRecognizer("no microphone found")
    logger.speech(f"Recording available: {len(inputs)} microphone(s) found")
    return MicrophoneRecognizer(sd, sf, config.record_seconds)


def detect_speech_capabilities(config: Optional[Settings] = None) -> SpeechCapabilities:
    """Probe playback and capture once; call at startup."""
    config = config or default_settings
    if not api.is_api_available():
        logger.warning("Speech disabled: OPENAI_API_KEY not set")
        return SpeechCapabilities.unsupported("OPENAI_API_KEY not set")

    capabilities = SpeechCapabilities(_detect_synthesizer(), _detect_recognizer(config))
    logger.speech(
        f"Synthesis: {'yes' if capabilities.synthesizer.supported else 'no'} | "
        f"Recognition: {'yes' if capabilities.recognizer.supported else 'no'}"
    )
    return capabilities
