"""Audio file inspection using ffprobe."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

AUDIO_SUFFIXES = (".mp3", ".wav", ".m4a", ".ogg", ".flac")


def check_ffprobe() -> bool:
    """Check if ffprobe is available on the system."""
    return shutil.which("ffprobe") is not None


def probe_duration(audio_path: Path) -> float:
    """Return the duration of an audio file in seconds, rounded to 2 decimals.

    Raises:
        FileNotFoundError: If ffprobe is not installed or the file doesn't exist.
        subprocess.CalledProcessError: If ffprobe fails.
        ValueError: If ffprobe reports no usable duration.
    """
    if not check_ffprobe():
        raise FileNotFoundError("ffprobe not found. Install ffmpeg to measure audio durations.")

    audio_path = Path(audio_path)
    if not audio_path.is_file():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        str(audio_path),
    ]
    result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    if result.returncode != 0:
        stderr_msg = result.stderr.decode(errors="replace").strip()
        raise subprocess.CalledProcessError(result.returncode, cmd, stderr=stderr_msg)

    raw = result.stdout.decode(errors="replace").strip()
    try:
        return round(float(raw), 2)
    except ValueError:
        raise ValueError(f"ffprobe returned no duration for {audio_path}: {raw!r}")


def list_audio_files(directory: Path) -> list[Path]:
    """Audio files directly under directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in AUDIO_SUFFIXES
    )
