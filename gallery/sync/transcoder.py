"""
Preview transcoding through ffmpeg.

The pipeline only sees the Transcoder interface, so tests can substitute a
fake. FFmpegTranscoder runs the real binary with a per-call timeout and
writes to a temporary file that is renamed into place on success.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, Protocol

from gallery.config import Settings, get_settings
from gallery.sync.errors import ConfigError, PerItemTranscodeError

logger = logging.getLogger(__name__)

PreviewFlavor = Literal["clip", "thumbnail"]

STDERR_TAIL = 2000


@dataclass(frozen=True)
class TranscodeOptions:
    """Parameters for one preview flavor."""

    flavor: PreviewFlavor = "thumbnail"
    duration_seconds: float = 0.5
    fps: int = 30
    width: int = 540
    height: int = 960
    quality: int = 85

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranscodeOptions":
        return cls(
            flavor=settings.preview_flavor,
            duration_seconds=settings.preview_duration_seconds,
            fps=settings.preview_fps,
            width=settings.preview_width,
            height=settings.preview_height,
            quality=settings.preview_quality,
        )

    @property
    def scale_pad_filter(self) -> str:
        """Fit inside the canvas keeping aspect ratio, then letterbox in black."""
        w, h = self.width, self.height
        return (
            f"scale={w}:{h}:force_original_aspect_ratio=decrease:flags=lanczos,"
            f"pad={w}:{h}:-1:-1:color=black"
        )


class Transcoder(Protocol):
    def ensure_available(self) -> None:
        """Raise ConfigError if the tool cannot run."""
        ...

    def transcode(self, source: Path, output: Path, options: TranscodeOptions) -> Path:
        """
        Produce a derived asset at `output` from `source`.

        Raises:
            PerItemTranscodeError: If the asset could not be produced
        """
        ...


def build_command(
    ffmpeg_path: str, source: Path, output: Path, options: TranscodeOptions
) -> list[str]:
    """Build the ffmpeg argument list for the requested flavor."""
    cmd = [ffmpeg_path, "-hide_banner", "-loglevel", "error", "-y", "-i", str(source)]

    if options.flavor == "thumbnail":
        cmd += [
            "-vf", options.scale_pad_filter,
            "-loop", "0",
            "-t", str(options.duration_seconds),
            "-r", str(options.fps),
            "-c:v", "libwebp",
            "-quality", str(options.quality),
            "-preset", "default",
            "-an",
            "-f", "webp",
        ]
    else:
        cmd += [
            "-t", str(options.duration_seconds),
            "-c:v", "libx264",
            "-c:a", "aac",
            "-movflags", "+faststart",
            "-f", "mp4",
        ]

    cmd.append(str(output))
    return cmd


class FFmpegTranscoder:
    """Runs ffmpeg as an external process."""

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        timeout_seconds: Optional[int] = None,
    ):
        settings = get_settings()
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path
        self.timeout_seconds = timeout_seconds or settings.transcode_timeout_seconds

    def is_available(self) -> bool:
        """Check if ffmpeg can be executed."""
        try:
            result = subprocess.run(
                [self.ffmpeg_path, "-version"],
                capture_output=True,
                text=True,
                timeout=30,
            )
            return result.returncode == 0
        except (OSError, subprocess.TimeoutExpired):
            return False

    def ensure_available(self) -> None:
        """
        Raises:
            ConfigError: If ffmpeg is not installed
        """
        if not self.is_available():
            raise ConfigError(
                f"ffmpeg not found ({self.ffmpeg_path}). Install it with: "
                "brew install ffmpeg (macOS) or sudo apt install ffmpeg (Ubuntu)"
            )
        logger.info("ffmpeg found")

    def transcode(self, source: Path, output: Path, options: TranscodeOptions) -> Path:
        output.parent.mkdir(parents=True, exist_ok=True)
        part_path = output.with_name(output.name + ".part")
        cmd = build_command(self.ffmpeg_path, source, part_path, options)
        logger.debug(f"FFmpeg command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            _remove_quietly(part_path)
            raise PerItemTranscodeError(
                source.name, f"ffmpeg exceeded timeout of {self.timeout_seconds} seconds"
            ) from e
        except OSError as e:
            _remove_quietly(part_path)
            raise PerItemTranscodeError(source.name, str(e)) from e

        if result.returncode != 0:
            _remove_quietly(part_path)
            stderr = (result.stderr or "").strip()[-STDERR_TAIL:]
            raise PerItemTranscodeError(
                source.name, f"ffmpeg exited with code {result.returncode}: {stderr}"
            )

        if not part_path.exists() or part_path.stat().st_size == 0:
            _remove_quietly(part_path)
            raise PerItemTranscodeError(source.name, "ffmpeg produced no output")

        os.replace(part_path, output)
        return output


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
