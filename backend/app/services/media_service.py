"""
Media tool adapters for Clipstream.

The upload pipeline talks to two external programs:
- ffprobe, to read the geometry of the primary video stream
- ffmpeg, to rewrite an MP4 with its ``moov`` index ahead of the media data
  ("fast start") so players can begin playback before the download finishes

Both are exposed behind small capability protocols (``MediaProber`` and
``FastStartRemuxer``) so the pipeline can be exercised with in-memory fakes.
The concrete adapters run the tools with ``subprocess.run`` in a worker thread
and enforce a per-invocation timeout.
"""

import asyncio
import json
import logging
import os
import subprocess

from dataclasses import dataclass
from typing import Any, Protocol

from app.config import Settings


logger = logging.getLogger(__name__)

# Cap on how much tool stderr is copied into log records
STDERR_LOG_LIMIT = 2000


# =============================================================================
# EXCEPTIONS
# =============================================================================


class MediaToolError(Exception):
    """Base exception for media tool failures."""


class ProbeError(MediaToolError):
    """Raised when ffprobe fails or reports no usable video stream."""


class RemuxError(MediaToolError):
    """Raised when the fast-start remux fails."""


# =============================================================================
# CAPABILITIES
# =============================================================================


@dataclass(frozen=True)
class VideoGeometry:
    """Pixel dimensions of the primary video stream."""

    width: int
    height: int


class MediaProber(Protocol):
    async def probe(self, path: str) -> VideoGeometry: ...


class FastStartRemuxer(Protocol):
    async def remux(self, input_path: str, output_path: str) -> None: ...


# =============================================================================
# SUBPROCESS HELPER
# =============================================================================


async def _run_tool(cmd: list[str], timeout: float) -> subprocess.CompletedProcess:
    """
    Run an external command in a worker thread.

    Raises:
        FileNotFoundError: If the executable does not exist
        subprocess.TimeoutExpired: If the command outlives ``timeout``
    """
    logger.debug("Running media tool: %s", " ".join(cmd))
    return await asyncio.to_thread(
        subprocess.run,
        cmd,
        check=False,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        timeout=timeout,
    )


def _stderr_excerpt(result: subprocess.CompletedProcess) -> str:
    stderr = result.stderr or b""
    return stderr.decode("utf-8", errors="replace")[-STDERR_LOG_LIMIT:].strip()


# =============================================================================
# FFPROBE
# =============================================================================


def parse_video_geometry(payload: dict[str, Any]) -> VideoGeometry:
    """
    Pick the first video stream with usable dimensions out of ffprobe's JSON.

    Raises:
        ProbeError: If the payload has no video stream with positive integer
            width and height.
    """
    streams = payload.get("streams")
    if not isinstance(streams, list):
        raise ProbeError("ffprobe output has no stream list")

    for stream in streams:
        if not isinstance(stream, dict) or stream.get("codec_type") != "video":
            continue
        width, height = stream.get("width"), stream.get("height")
        # bool is an int subclass; reject it explicitly
        if (
            isinstance(width, int)
            and isinstance(height, int)
            and not isinstance(width, bool)
            and not isinstance(height, bool)
            and width > 0
            and height > 0
        ):
            return VideoGeometry(width=width, height=height)

    raise ProbeError("No video stream with usable dimensions")


class FFprobeProber:
    """``MediaProber`` backed by the ffprobe command-line tool."""

    def __init__(self, binary: str = "ffprobe", timeout: float = 300.0) -> None:
        self.binary = binary
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFprobeProber":
        return cls(binary=settings.ffprobe_binary, timeout=settings.media_tool_timeout_seconds)

    async def probe(self, path: str) -> VideoGeometry:
        """
        Read the primary video stream's width and height.

        The input file is opened read-only by ffprobe and never modified.

        Raises:
            ProbeError: If the tool is missing, times out, exits non-zero, or
                its output is not the expected JSON stream description.
        """
        cmd = [self.binary, "-v", "error", "-print_format", "json", "-show_streams", path]

        try:
            result = await _run_tool(cmd, self.timeout)
        except FileNotFoundError as e:
            raise ProbeError(f"ffprobe executable not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out after {self.timeout}s") from e

        if result.returncode != 0:
            logger.warning(
                "ffprobe exited with %d: %s", result.returncode, _stderr_excerpt(result)
            )
            raise ProbeError(f"ffprobe exited with status {result.returncode}")

        try:
            payload = json.loads(result.stdout)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProbeError("ffprobe output is not valid JSON") from e

        if not isinstance(payload, dict):
            raise ProbeError("ffprobe output is not a JSON object")

        geometry = parse_video_geometry(payload)
        logger.debug("Probed %s: %dx%d", path, geometry.width, geometry.height)
        return geometry


# =============================================================================
# FFMPEG
# =============================================================================


class FFmpegRemuxer:
    """``FastStartRemuxer`` backed by ffmpeg stream copy."""

    def __init__(self, binary: str = "ffmpeg", timeout: float = 300.0) -> None:
        self.binary = binary
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFmpegRemuxer":
        return cls(binary=settings.ffmpeg_binary, timeout=settings.media_tool_timeout_seconds)

    async def remux(self, input_path: str, output_path: str) -> None:
        """
        Copy all streams from ``input_path`` into a fast-start MP4 at ``output_path``.

        Streams are copied without re-encoding. Any partial output is removed
        when the remux fails.

        Raises:
            RemuxError: If the paths coincide, the tool is missing, times out,
                or exits non-zero.
        """
        if os.path.abspath(input_path) == os.path.abspath(output_path):
            raise RemuxError("Remux output path must differ from the input path")

        cmd = [
            self.binary,
            "-nostdin",
            "-y",
            "-i",
            input_path,
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            output_path,
        ]

        try:
            result = await _run_tool(cmd, self.timeout)
        except FileNotFoundError as e:
            raise RemuxError(f"ffmpeg executable not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            _remove_partial_output(output_path)
            raise RemuxError(f"ffmpeg timed out after {self.timeout}s") from e

        if result.returncode != 0:
            logger.warning(
                "ffmpeg exited with %d: %s", result.returncode, _stderr_excerpt(result)
            )
            _remove_partial_output(output_path)
            raise RemuxError(f"ffmpeg exited with status {result.returncode}")

        if not os.path.isfile(output_path):
            raise RemuxError("ffmpeg reported success but wrote no output")

        logger.debug("Remuxed %s -> %s", input_path, output_path)


def _remove_partial_output(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove partial remux output %s: %s", path, e)
