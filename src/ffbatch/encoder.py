"""
ffmpeg launching for ffbatch.

Contains:
- Dependency and hardware acceleration checks
- Output path naming
- Frame-rate override detection in user arguments
- FFmpeg command building
- Background process start/stop
"""

import re
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ffbatch.errors import EncodeError, MissingDependencyError

REQUIRED_PROGRAMS = ("ffmpeg", "ffprobe")

OUTPUT_TAG = "_NEW"
PARTIAL_SUFFIX = ".partial"

# Extensions whose ffmpeg muxer name differs from the extension
MUXER_NAMES = {
    "mkv": "matroska",
}

_RATE_RE = re.compile(r"(?:^|\s)-r\s+(\d+)")


# -------------------- CHECKS --------------------


def check_dependencies(programs: Iterable[str] = REQUIRED_PROGRAMS) -> None:
    """Raise MissingDependencyError for the first program not on PATH."""
    for program in programs:
        if shutil.which(program) is None:
            raise MissingDependencyError(program)


def have_hwaccel(name: str = "cuda") -> bool:
    """Check if ffmpeg lists the named hardware acceleration method."""
    try:
        result = subprocess.run(
            ["ffmpeg", "-hide_banner", "-hwaccels"], capture_output=True, text=True, timeout=10.0
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    output = result.stdout + result.stderr
    return any(line.strip() == name for line in output.splitlines())


# -------------------- JOB MODEL --------------------


def parse_rate_override(ffmpeg_args: str) -> Optional[int]:
    """Return the integer given to the last -r in the user arguments, if any."""
    # ffmpeg only honors the last -r
    matches = _RATE_RE.findall(ffmpeg_args or "")
    if matches:
        return int(matches[-1])
    return None


def output_paths(source: Path, dst_dir: Path, ext: str) -> Tuple[Path, Path]:
    """Return (partial_path, final_path) for a source file."""
    final = Path(dst_dir) / f"{source.stem}{OUTPUT_TAG}.{ext}"
    partial = final.with_name(final.name + PARTIAL_SUFFIX)
    return partial, final


@dataclass
class EncodeJob:
    """One source file and the ffmpeg run converting it."""

    source: Path
    ext: str
    partial_path: Path
    final_path: Path
    ffmpeg_args: str
    status_path: Path
    total_frames: int = 0
    hwaccel: Optional[str] = None
    process: Optional[subprocess.Popen] = None

    @classmethod
    def create(
        cls,
        source: Path,
        dst_dir: Path,
        ext: str,
        ffmpeg_args: str,
        status_path: Path,
        hwaccel: Optional[str] = None,
    ) -> "EncodeJob":
        partial, final = output_paths(source, dst_dir, ext)
        return cls(
            source=source,
            ext=ext,
            partial_path=partial,
            final_path=final,
            ffmpeg_args=ffmpeg_args,
            status_path=status_path,
            hwaccel=hwaccel,
        )


# -------------------- COMMAND BUILDING --------------------


def muxer_for(ext: str) -> str:
    """ffmpeg -f name for an output extension."""
    return MUXER_NAMES.get(ext.lower(), ext.lower())


def build_encode_cmd(job: EncodeJob) -> List[str]:
    """Build the full ffmpeg command line for a job."""
    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-loglevel",
        "error",
        "-progress",
        str(job.status_path),
        "-y",
    ]
    if job.hwaccel:
        cmd += ["-hwaccel", job.hwaccel]
    cmd += ["-i", str(job.source)]
    cmd += shlex.split(job.ffmpeg_args or "")
    cmd += ["-f", muxer_for(job.ext), str(job.partial_path)]
    return cmd


# -------------------- PROCESS CONTROL --------------------


def launch(job: EncodeJob, log_path: Optional[Path] = None) -> subprocess.Popen:
    """
    Start ffmpeg for a job without waiting for it.

    stderr goes to log_path (appended) when given. The process handle is
    stored on the job and returned.
    """
    cmd = build_encode_cmd(job)
    stderr = subprocess.DEVNULL
    log_file = None
    if log_path is not None:
        try:
            log_file = log_path.open("ab")
            log_file.write(f"CMD: {shlex.join(cmd)}\n".encode("utf-8"))
            log_file.flush()
        except OSError as e:
            if log_file is not None:
                log_file.close()
            raise EncodeError(f"Cannot write log file {log_path}.", details=str(e))
        stderr = log_file

    try:
        job.process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=stderr,
        )
    except FileNotFoundError:
        raise MissingDependencyError("ffmpeg")
    except OSError as e:
        raise EncodeError("Cannot start ffmpeg.", details=str(e))
    finally:
        # The child holds its own descriptor.
        if log_file is not None:
            log_file.close()

    return job.process


def stop(process: Optional[subprocess.Popen], force: bool = False, grace: float = 0.5) -> None:
    """
    Stop a running process.

    With force, SIGKILL is sent straight away; otherwise SIGTERM first and
    SIGKILL if the process is still alive after grace seconds.
    """
    if process is None or process.poll() is not None:
        return
    try:
        if not force:
            process.terminate()
            time.sleep(grace)
        if process.poll() is None:
            process.kill()
        process.wait(timeout=5)
    except (OSError, subprocess.TimeoutExpired):
        pass
