"""
Metadata probing for ffbatch.

Runs ffprobe against a source file and turns its key=value output into
a MediaInfo record. Individual fields may be missing; only duration and
frame rate are required to drive the progress bar.
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ffbatch.errors import MissingDependencyError, NoInputError, ProbeError
from ffbatch.ui.legacy_ui import fmt_hms

PROBE_TIMEOUT = 60.0


@dataclass(frozen=True)
class MediaInfo:
    """Metadata for one source file. Absent fields are None."""

    duration: Optional[int] = None  # seconds, truncated
    fps: Optional[int] = None
    resolution: Optional[str] = None  # "WxH"
    bitrate_kbps: Optional[int] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    audio_channels: Optional[int] = None
    sample_rate: Optional[int] = None
    format_name: Optional[str] = None

    @property
    def frames(self) -> Optional[int]:
        """Expected frame count derived from fps and duration."""
        if self.fps is None or self.duration is None:
            return None
        return self.fps * self.duration


def _to_int(value: str) -> Optional[int]:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _parse_rate(value: str) -> Optional[int]:
    """Parse an ffprobe rational like 30000/1001 into whole fps (0 for x/0)."""
    num, _, den = value.partition("/")
    n = _to_int(num)
    if n is None:
        return None
    if not den:
        return n
    d = _to_int(den)
    if d is None:
        return None
    if d <= 0:
        return 0
    return int(n / d)


def parse_probe_output(text: str) -> MediaInfo:
    """
    Parse ffprobe ``-show_entries format=duration -show_streams`` output.

    The first occurrence of each key wins, except ``codec_name`` where the
    first value is the video codec and the second the audio codec.
    ``N/A`` values count as absent.
    """
    first: Dict[str, str] = {}
    codecs: List[str] = []
    width: Optional[str] = None
    resolution: Optional[str] = None

    for raw in text.splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep:
            continue
        value = value.strip()
        if not value or value == "N/A":
            continue
        if key == "codec_name":
            codecs.append(value)
            continue
        if key == "width":
            width = value
            continue
        if key == "height" and resolution is None and width is not None:
            resolution = f"{width}x{value}"
            continue
        first.setdefault(key, value)

    bitrate = _to_int(first["bit_rate"]) if "bit_rate" in first else None

    return MediaInfo(
        duration=_to_int(first["duration"]) if "duration" in first else None,
        fps=_parse_rate(first["avg_frame_rate"]) if "avg_frame_rate" in first else None,
        resolution=resolution,
        bitrate_kbps=bitrate // 1000 if bitrate is not None else None,
        video_codec=codecs[0] if codecs else None,
        audio_codec=codecs[1] if len(codecs) > 1 else None,
        audio_channels=_to_int(first["channels"]) if "channels" in first else None,
        sample_rate=_to_int(first["sample_rate"]) if "sample_rate" in first else None,
        format_name=first.get("format_name"),
    )


def run_ffprobe(args: List[str], timeout: float = PROBE_TIMEOUT) -> str:
    """Run ffprobe with args and return its combined output as text."""
    cmd = ["ffprobe", "-v", "error"] + args
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise MissingDependencyError("ffprobe")
    return result.stdout.decode("utf-8", errors="replace")


def probe_media(path: Optional[Path]) -> MediaInfo:
    """
    Probe a file and return its MediaInfo.

    Raises:
        NoInputError: path is empty.
        ProbeError: duration or frame rate could not be determined.
    """
    if not path:
        raise NoInputError("No File/URL Returned")

    try:
        output = run_ffprobe(["-show_entries", "format=duration", "-show_streams", str(path)])
    except subprocess.TimeoutExpired:
        raise ProbeError("Failed to extract video duration and/or FPS.", f"ffprobe timed out on {path}")

    info = parse_probe_output(output)
    if info.duration is None or info.fps is None:
        raise ProbeError("Failed to extract video duration and/or FPS.", str(path))
    return info


def probe_frame_count(path: Path) -> Optional[int]:
    """Return nb_frames of the first video stream, or None if unknown."""
    try:
        output = run_ffprobe(
            [
                "-select_streams",
                "v:0",
                "-show_entries",
                "stream=nb_frames",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                str(path),
            ]
        )
    except subprocess.TimeoutExpired:
        return None
    for line in output.splitlines():
        count = _to_int(line.strip())
        if count is not None:
            return count
    return None


def describe(info: MediaInfo) -> List[Tuple[str, str]]:
    """Return (label, value) rows for display, skipping absent fields."""
    rows: List[Tuple[str, str]] = []
    if info.duration is not None:
        rows.append(("Video Duration", fmt_hms(info.duration)))
    if info.fps is not None:
        rows.append(("Video FPS", str(info.fps)))
    if info.frames is not None:
        rows.append(("Video Frames", str(info.frames)))
    if info.resolution:
        rows.append(("Video Resolution", info.resolution))
    if info.bitrate_kbps is not None:
        rows.append(("Video Bitrate", f"{info.bitrate_kbps} kb/s"))
    if info.video_codec:
        rows.append(("Video Codec", info.video_codec))
    if info.audio_codec:
        rows.append(("Audio Codec", info.audio_codec))
    if info.audio_channels is not None:
        rows.append(("Audio Channels", f"{info.audio_channels} channels"))
    if info.sample_rate is not None:
        rows.append(("Audio Sample Rate", f"{info.sample_rate} Hz"))
    if info.format_name:
        rows.append(("Format", info.format_name))
    return rows
