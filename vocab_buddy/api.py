"""
OpenAI-backed services for Vocab Buddy.

This module handles:
- Word translation (single chat-completion call)
- Text-to-speech for listening prompts
- Speech-to-text for speaking answers

API key is expected in a .env file at the project root:

    OPENAI_API_KEY=sk-...

None of these calls retry. Failures are logged and reported to the caller,
which decides whether to fall back to manual entry.
"""

import os
import tempfile
from typing import Optional

import openai
from openai import OpenAI

from .config import settings
from .logger import logger, Timer
from .models import TranslationResult

# ---------------------------------------------------------------------------
# Environment & OpenAI client setup
# ---------------------------------------------------------------------------

if settings.openai_api_key:
    logger.env_success(f"OPENAI_API_KEY found: {settings.masked_api_key}")
    client: Optional[OpenAI] = OpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.request_timeout,
        max_retries=0,
    )
    logger.env_success("OpenAI client initialized successfully")
else:
    logger.env_error("OPENAI_API_KEY not found in environment!")
    logger.warning("Translation and speech will be unavailable")
    client = None

logger.env(f"Chat model: {settings.chat_model} | TTS: {settings.tts_model} | STT: {settings.stt_model}")

TRANSLATION_SYSTEM_PROMPT = (
    "You are a translation engine. Only return the translated text, "
    "no explanations, no quotes, no extra words."
)

# OpenAI TTS voices: alloy, echo, fable, onyx, nova, shimmer
LANGUAGE_VOICE_MAP = {
    "es": "nova",
    "fr": "shimmer",
    "de": "onyx",
    "pt": "nova",
    "ja": "nova",
    "ko": "nova",
    "en": "alloy",
}

DEFAULT_TTS_VOICE = "nova"


def is_api_available() -> bool:
    """Check if the OpenAI API client is properly configured."""
    return client is not None


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

def translate(text: str, source_language: str, target_language: str) -> TranslationResult:
    """
    Translate a word or short phrase.

    Never raises: a missing key, a transport failure, an API error or an empty
    reply all come back as ``TranslationResult(error=...)``.
    """
    text = (text or "").strip()
    if not text:
        return TranslationResult(error="Nothing to translate")

    if client is None:
        logger.warning("OpenAI client not available, cannot translate")
        return TranslationResult(error="Missing OpenAI API key")

    logger.api(f"translate() {source_language} → {target_language}: '{text[:40]}'")
    try:
        logger.api_call("chat.completions.create", model=settings.chat_model)
        with Timer() as timer:
            completion = client.chat.completions.create(
                model=settings.chat_model,
                temperature=0,
                messages=[
                    {"role": "system", "content": TRANSLATION_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": f"Translate this from {source_language} to {target_language}: {text}",
                    },
                ],
            )
        logger.api_response("chat.completions.create", duration_ms=timer.duration_ms)
    except (openai.APIConnectionError, openai.APITimeoutError) as e:
        logger.api_error(f"Could not reach translation service: {e}")
        return TranslationResult(error="Could not translate (network error)")
    except openai.APIError as e:
        logger.api_error(f"Translation failed: {e}")
        return TranslationResult(error="Translation failed")

    content = completion.choices[0].message.content if completion.choices else None
    translation = (content or "").strip()
    if not translation:
        logger.api_error("No translation returned")
        return TranslationResult(error="No translation returned")

    logger.success(f"Translated '{text}' → '{translation}'")
    return TranslationResult(translation=translation)


# ---------------------------------------------------------------------------
# Text-to-Speech (TTS)
# ---------------------------------------------------------------------------

def get_voice_for_language(language_code: str) -> str:
    """Get the TTS voice for a language code."""
    return LANGUAGE_VOICE_MAP.get(language_code, DEFAULT_TTS_VOICE)


def generate_speech(text: str, language_code: str, voice: Optional[str] = None) -> Optional[str]:
    """
    Generate speech audio from text using OpenAI's TTS API.

    Returns:
        Path to the generated MP3 file (the caller deletes it), or None on failure
    """
    if client is None:
        logger.warning("OpenAI client not available, skipping TTS generation")
        return None

    if not text or not text.strip():
        logger.warning("Empty text provided for TTS")
        return None

    selected_voice = voice or get_voice_for_language(language_code)
    logger.api(f"generate_speech() - {len(text)} chars, voice={selected_voice}, lang={language_code}")

    try:
        logger.api_call("audio.speech.create", model=settings.tts_model)
        with Timer() as timer:
            response = client.audio.speech.create(
                model=settings.tts_model,
                voice=selected_voice,
                input=text,
                response_format="mp3",
            )
        logger.api_response("audio.speech.create", duration_ms=timer.duration_ms)

        fd, path = tempfile.mkstemp(suffix=".mp3", prefix="vocab_speech_")
        with os.fdopen(fd, "wb") as f:
            for chunk in response.iter_bytes():
                f.write(chunk)
        return path

    except openai.APIError as e:
        logger.api_error(f"TTS generation failed: {e}")
        return None


# ---------------------------------------------------------------------------
# Speech-to-Text (STT)
# ---------------------------------------------------------------------------

def transcribe_audio(audio_path: str, language_code: Optional[str] = None) -> Optional[str]:
    """
    Transcribe a recording with Whisper.

    Args:
        audio_path: Path to the audio file (wav, mp3, m4a, ...)
        language_code: ISO 639-1 hint, e.g. 'es'

    Returns:
        Transcribed text, or None on failure
    """
    if client is None:
        logger.warning("OpenAI client not available, cannot transcribe audio")
        return None

    logger.api(f"transcribe_audio() - file={audio_path}, lang={language_code}")
    try:
        with open(audio_path, "rb") as audio_file:
            kwargs = {
                "model": settings.stt_model,
                "file": audio_file,
                "response_format": "text",
            }
            if language_code:
                kwargs["language"] = language_code

            logger.api_call("audio.transcriptions.create", model=settings.stt_model)
            with Timer() as timer:
                transcription = client.audio.transcriptions.create(**kwargs)
            logger.api_response("audio.transcriptions.create", duration_ms=timer.duration_ms)

    except openai.APIError as e:
        logger.api_error(f"Transcription failed: {e}")
        return None

    # response_format="text" returns a bare string
    result = transcription.strip() if isinstance(transcription, str) else str(transcription).strip()
    logger.success(f"Transcription complete: '{result[:50]}'")
    return result
