"""Text-to-speech pronunciation of vocabulary readings."""

import importlib.util
import logging
import platform
import shutil
import subprocess
import tempfile
from pathlib import Path


logger = logging.getLogger(__name__)


class TTSError(Exception):
    """Error during text-to-speech operation."""
    pass


# Players tried in order on Linux, with the arguments they need
LINUX_PLAYERS = (
    ("mpv", ["--really-quiet"]),
    ("mpg123", ["-q"]),
    ("ffplay", ["-nodisp", "-autoexit", "-loglevel", "quiet"]),
)


class TextToSpeech:
    """Google TTS (gTTS) speech played through a system audio player."""

    def __init__(self, lang: str = "ja"):
        self.lang = lang
        self._gtts_available = None
        self._temp_dir = Path(tempfile.gettempdir()) / "n2vocab-tts"

    def is_available(self) -> bool:
        """Check if gTTS is installed."""
        if self._gtts_available is None:
            self._gtts_available = importlib.util.find_spec("gtts") is not None
        return self._gtts_available

    def speak(self, text: str, slow: bool = False) -> None:
        """Speak the given text.

        Raises:
            TTSError: If synthesis or playback fails
        """
        if not text or not text.strip():
            return

        if not self.is_available():
            raise TTSError("gTTS not installed. Run: pip install gTTS")

        from gtts import gTTS
        from gtts.tts import gTTSError

        self._temp_dir.mkdir(exist_ok=True)
        audio_file = self._temp_dir / ("speech_slow.mp3" if slow else "speech.mp3")
        try:
            gTTS(text=text.strip(), lang=self.lang, slow=slow).save(str(audio_file))
        except (gTTSError, ValueError, OSError) as e:
            raise TTSError(f"TTS failed: {e}") from e

        logger.debug("Speaking %r (%s)", text, self.lang)
        self._play_audio(audio_file)

    def _play_audio(self, audio_file: Path) -> None:
        """Play an audio file with the platform's player."""
        system = platform.system()
        if system == "Darwin":
            command = ["afplay", str(audio_file)]
        elif system == "Linux":
            for player, args in LINUX_PLAYERS:
                if shutil.which(player):
                    command = [player, *args, str(audio_file)]
                    break
            else:
                raise TTSError("No audio player found. Install mpv, mpg123, or ffplay.")
        elif system == "Windows":
            command = [
                "powershell", "-c",
                f"(New-Object Media.SoundPlayer '{audio_file}').PlaySync()",
            ]
        else:
            raise TTSError(f"Unsupported platform: {system}")

        try:
            subprocess.run(command, check=True, capture_output=True)
        except subprocess.CalledProcessError as e:
            raise TTSError(f"Audio playback failed: {e}") from e
        except FileNotFoundError as e:
            raise TTSError("Audio player not found") from e


_tts_instance = None


def get_tts(lang: str = "ja") -> TextToSpeech:
    """Get the shared TTS instance, switching language if needed."""
    global _tts_instance
    if _tts_instance is None:
        _tts_instance = TextToSpeech(lang)
    _tts_instance.lang = lang
    return _tts_instance
