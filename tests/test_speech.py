import os
import sys
from unittest.mock import MagicMock, patch

import pytest

from vocab_buddy import speech
from vocab_buddy.config import Settings
from vocab_buddy.errors import NetworkError, UnsupportedCapability
from vocab_buddy.speech import (
    MicrophoneRecognizer, OpenAISynthesizer, SpeechCapabilities, UnsupportedRecognizer,
    UnsupportedSynthesizer, detect_speech_capabilities,
)


class FakePortAudioError(Exception):
    pass


class FakePygameError(Exception):
    pass


def _sounddevice():
    sd = MagicMock()
    sd.PortAudioError = FakePortAudioError
    return sd


def test_unsupported_variants_raise():
    caps = SpeechCapabilities.unsupported("no audio")

    assert caps.synthesizer.supported is False
    assert caps.recognizer.supported is False
    with pytest.raises(UnsupportedCapability) as excinfo:
        caps.synthesizer.speak("hola", "es")
    assert "no audio" in str(excinfo.value)
    with pytest.raises(UnsupportedCapability):
        caps.recognizer.recognize("es")


def test_detect_without_api_key_is_unsupported():
    with patch.object(speech.api, "is_api_available", return_value=False):
        caps = detect_speech_capabilities(Settings())

    assert isinstance(caps.synthesizer, UnsupportedSynthesizer)
    assert isinstance(caps.recognizer, UnsupportedRecognizer)


def test_detect_resolves_each_capability_once():
    synth, recog = MagicMock(supported=True), MagicMock(supported=False)
    with patch.object(speech.api, "is_api_available", return_value=True), \
            patch.object(speech, "_detect_synthesizer", return_value=synth) as detect_synth, \
            patch.object(speech, "_detect_recognizer", return_value=recog) as detect_recog:
        caps = detect_speech_capabilities(Settings())

    assert caps.synthesizer is synth
    assert caps.recognizer is recog
    detect_synth.assert_called_once_with()
    detect_recog.assert_called_once()


def test_microphone_recognizer_transcribes_and_cleans_up():
    sd, sf = _sounddevice(), MagicMock()
    recognizer = MicrophoneRecognizer(sd, sf, seconds=2)

    with patch.object(speech.api, "transcribe_audio", return_value="hola") as transcribe:
        assert recognizer.recognize("es") == "hola"

    path, language = transcribe.call_args.args
    assert language == "es"
    assert not os.path.exists(path)
    sd.rec.assert_called_once()
    assert sd.rec.call_args.args[0] == 2 * speech.SAMPLE_RATE


def test_microphone_recognizer_device_error_is_unsupported():
    sd = _sounddevice()
    sd.rec.side_effect = FakePortAudioError("device busy")

    with pytest.raises(UnsupportedCapability):
        MicrophoneRecognizer(sd, MagicMock(), seconds=1).recognize("es")


def test_microphone_recognizer_write_error_is_unsupported():
    sf = MagicMock()
    sf.write.side_effect = RuntimeError("Error opening file: format not supported")

    with patch.object(speech.api, "transcribe_audio") as transcribe:
        with pytest.raises(UnsupportedCapability):
            MicrophoneRecognizer(_sounddevice(), sf, seconds=1).recognize("es")

    transcribe.assert_not_called()
    assert not os.path.exists(sf.write.call_args.args[0])


def test_missing_pygame_disables_synthesis_only():
    recog = MagicMock(supported=True)
    with patch.dict(sys.modules, {"pygame": None}), \
            patch.object(speech.api, "is_api_available", return_value=True), \
            patch.object(speech, "_detect_recognizer", return_value=recog):
        caps = detect_speech_capabilities(Settings())

    assert isinstance(caps.synthesizer, UnsupportedSynthesizer)
    assert caps.recognizer is recog
    with pytest.raises(UnsupportedCapability) as excinfo:
        caps.synthesizer.speak("hola", "es")
    assert "pygame" in str(excinfo.value)


def test_missing_recording_packages_disable_recognition():
    for module in ("sounddevice", "soundfile"):
        with patch.dict(sys.modules, {module: None}):
            recognizer = speech._detect_recognizer(Settings())

        assert isinstance(recognizer, UnsupportedRecognizer)
        with pytest.raises(UnsupportedCapability):
            recognizer.recognize("es")


def test_microphone_recognizer_failed_transcription():
    with patch.object(speech.api, "transcribe_audio", return_value=None):
        with pytest.raises(NetworkError):
            MicrophoneRecognizer(_sounddevice(), MagicMock(), seconds=1).recognize("es")


def _pygame(busy_polls=0):
    pygame = MagicMock()
    pygame.error = FakePygameError
    pygame.mixer.music.get_busy.side_effect = [True] * busy_polls + [False]
    return pygame


def test_synthesizer_plays_generated_audio_and_removes_it(tmp_path):
    audio = tmp_path / "speech.mp3"
    audio.write_bytes(b"ID3")
    pygame = _pygame(busy_polls=2)

    with patch.object(speech.api, "generate_speech", return_value=str(audio)):
        OpenAISynthesizer(pygame)._play("perro", "es")

    pygame.mixer.music.load.assert_called_once_with(str(audio))
    pygame.mixer.music.play.assert_called_once_with()
    assert pygame.time.wait.call_count == 2
    pygame.mixer.music.unload.assert_called_once_with()
    assert not audio.exists()


def test_synthesizer_removes_audio_when_playback_fails(tmp_path):
    audio = tmp_path / "speech.mp3"
    audio.write_bytes(b"ID3")
    pygame = _pygame()
    pygame.mixer.music.load.side_effect = FakePygameError("unsupported format")

    with patch.object(speech.api, "generate_speech", return_value=str(audio)):
        OpenAISynthesizer(pygame)._play("perro", "es")

    assert not audio.exists()


def test_synthesizer_skips_playback_without_audio():
    pygame = MagicMock()
    pygame.error = FakePygameError

    with patch.object(speech.api, "generate_speech", return_value=None):
        OpenAISynthesizer(pygame)._play("perro", "es")

    pygame.mixer.music.load.assert_not_called()
