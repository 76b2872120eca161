"""Speech-to-text caption fallback powered by faster-whisper.

Audio is pulled out of the media file with FFmpeg (16 kHz mono PCM) and
transcribed with word timestamps. Each word becomes its own caption line;
the segmentation engine later folds them into readable segments.
"""

import os
import shutil
import subprocess
import tempfile
from functools import lru_cache
from pathlib import Path

import ctranslate2
from faster_whisper import WhisperModel
from loguru import logger

from marquee.catalog.models import CaptionLine
from marquee.catalog.srt_utils import write_srt_file
from marquee.core.errors import TranscriptionError, handle_errors


@lru_cache(maxsize=2)
def _find_executable(name: str) -> str:
    """Find executable in PATH, with caching."""
    path = shutil.which(name)
    if not path:
        raise FileNotFoundError(
            f"{name} not found in PATH. Please ensure FFmpeg is installed and accessible.\n"
            f"Windows: Add FFmpeg to your system PATH environment variable\n"
            f"Linux/macOS: Install via package manager (apt, brew, etc.)"
        )
    return path


def extract_audio(media_file: Path, output_path: Path) -> Path:
    """Extract the full audio track as 16 kHz mono WAV using ffmpeg."""
    ffmpeg = _find_executable("ffmpeg")
    cmd = [
        ffmpeg,
        "-i",
        os.fspath(media_file),
        "-vn",  # Disable video
        "-sn",  # Disable subtitles
        "-dn",  # Disable data streams
        "-acodec",
        "pcm_s16le",
        "-ar",
        "16000",
        "-ac",
        "1",
        "-y",
        os.fspath(output_path),
    ]

    logger.debug(f"Running ffmpeg command: {' '.join(cmd)}")
    result = subprocess.run(cmd, capture_output=True, text=True)

    if result.returncode != 0:
        error_msg = f"FFmpeg failed with return code {result.returncode}"
        if result.stderr:
            error_msg += f". Error: {result.stderr.strip()[-500:]}"
        raise RuntimeError(error_msg)

    if not output_path.exists() or output_path.stat().st_size < 1024:
        raise RuntimeError(f"Extracted audio missing or too small: {output_path}")
    return output_path


class WhisperTranscriber:
    """Lazily loaded faster-whisper model producing word-level SRT files."""

    def __init__(self, model_name: str = "base", device: str = "auto", translate: bool = True):
        self.model_name = model_name
        self.translate = translate
        if device == "auto":
            device = "cuda" if ctranslate2.get_cuda_device_count() > 0 else "cpu"
        self.device = device
        self._model: WhisperModel | None = None

    def _get_model(self) -> WhisperModel:
        if self._model is None:
            compute_type = "float16" if self.device == "cuda" else "int8"
            logger.info(
                f"Loading Whisper model '{self.model_name}' on {self.device} ({compute_type})"
            )
            self._model = WhisperModel(self.model_name, device=self.device, compute_type=compute_type)
        return self._model

    def transcribe_lines(self, audio_path: Path) -> list[CaptionLine]:
        """Run speech-to-text and return one caption line per word."""
        segments, info = self._get_model().transcribe(
            os.fspath(audio_path),
            task="translate" if self.translate else "transcribe",
            word_timestamps=True,
        )
        logger.info(f"Detected language '{info.language}' ({info.language_probability:.0%})")

        lines = []
        for seg in segments:
            words = seg.words or []
            if not words and seg.text.strip():
                lines.append(
                    CaptionLine(
                        start=int(seg.start * 1000), end=int(seg.end * 1000), text=seg.text.strip()
                    )
                )
            for word in words:
                text = word.word.strip()
                if text:
                    lines.append(
                        CaptionLine(start=int(word.start * 1000), end=int(word.end * 1000), text=text)
                    )
        return lines

    @handle_errors(
        error_types=(RuntimeError, OSError, ValueError, subprocess.SubprocessError),
        default_message="Transcription failed",
        wrap_as=TranscriptionError,
    )
    def transcribe(self, media_path: Path, output_path: Path) -> Path:
        """Transcribe ``media_path`` into a raw SRT file at ``output_path``.

        An existing output file is left untouched.

        Raises:
            TranscriptionError: If audio extraction or speech recognition fails
        """
        if output_path.exists():
            logger.info(f"Transcript already present: {output_path}")
            return output_path

        logger.info(f"Transcribing {media_path.name} (this may take a while)")
        with tempfile.TemporaryDirectory(prefix="marquee_") as tmp:
            audio_path = extract_audio(media_path, Path(tmp) / f"{media_path.stem}.wav")
            lines = self.transcribe_lines(audio_path)

        if not lines:
            raise RuntimeError(f"No speech recognized in {media_path.name}")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        write_srt_file(output_path, lines)
        logger.info(f"Wrote {len(lines)} caption lines to {output_path}")
        return output_path
