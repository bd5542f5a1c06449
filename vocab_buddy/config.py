"""
Runtime configuration for Vocab Buddy.

Values come from the environment, optionally seeded from a .env file at the
project root:

    OPENAI_API_KEY=sk-...
    FIREBASE_CREDENTIALS_PATH=./firebase-credentials.json
    VOCAB_BUDDY_STORE=firestore        # or "memory" for local runs

We use python-dotenv + os.getenv so secrets stay out of git.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .logger import logger

STORE_FIRESTORE = "firestore"
STORE_MEMORY = "memory"


@dataclass
class Settings:
    openai_api_key: Optional[str] = None
    chat_model: str = "gpt-4o-mini"
    tts_model: str = "tts-1"
    stt_model: str = "whisper-1"
    firebase_credentials_path: Optional[str] = None
    store_backend: str = STORE_FIRESTORE
    request_timeout: float = 10.0        # seconds, applied to every remote call
    record_seconds: float = 4.0          # microphone capture length for speaking tests
    id_token: Optional[str] = None       # Firebase ID token for the console user

    @property
    def masked_api_key(self) -> str:
        """API key with everything but the first 8 and last 4 chars hidden."""
        key = self.openai_api_key or ""
        if len(key) > 12:
            return f"{key[:8]}...{key[-4:]}"
        return "***"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using {default}")
        return default


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from the environment (and .env when ``dotenv`` is set)."""
    if dotenv:
        if load_dotenv():
            logger.env_success("dotenv file loaded successfully")
        else:
            logger.env("No .env file found, using process environment")

    store_backend = os.getenv("VOCAB_BUDDY_STORE", STORE_FIRESTORE).strip().lower()
    if store_backend not in (STORE_FIRESTORE, STORE_MEMORY):
        logger.warning(f"Unknown VOCAB_BUDDY_STORE={store_backend!r}, falling back to {STORE_FIRESTORE}")
        store_backend = STORE_FIRESTORE

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        chat_model=os.getenv("VOCAB_BUDDY_CHAT_MODEL", Settings.chat_model),
        tts_model=os.getenv("VOCAB_BUDDY_TTS_MODEL", Settings.tts_model),
        stt_model=os.getenv("VOCAB_BUDDY_STT_MODEL", Settings.stt_model),
        firebase_credentials_path=os.getenv("FIREBASE_CREDENTIALS_PATH") or None,
        store_backend=store_backend,
        request_timeout=_float_env("VOCAB_BUDDY_TIMEOUT", Settings.request_timeout),
        record_seconds=_float_env("VOCAB_BUDDY_RECORD_SECONDS", Settings.record_seconds),
        id_token=os.getenv("VOCAB_BUDDY_ID_TOKEN") or None,
    )


settings = load_settings()
