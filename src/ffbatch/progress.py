"""
Progress tracking for ffbatch.

ffmpeg is started with ``-progress <file>`` and keeps appending key=value
blocks to that file (the status channel). The monitor polls the channel
on a fixed tick, turns the newest values into a ProgressSample and hands
it to a callback until the ffmpeg process exits.

States of ProgressMonitor:
- WAITING: process alive, no frame= line seen yet
- SAMPLING: process alive, at least one sample delivered
- DONE: process gone, exit status collected
"""

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from ffbatch.errors import ChannelError

WAITING = "WAITING"
SAMPLING = "SAMPLING"
DONE = "DONE"

DEFAULT_INTERVAL = 0.3


@dataclass
class ProgressSample:
    """Latest values reported by ffmpeg."""

    frame: int = 0
    bitrate: str = ""
    fps: str = ""
    out_time: str = ""
    speed: str = ""
    state: str = "continue"  # "continue" or "end"
    percent: int = 0


def parse_progress_text(text: str) -> Optional[ProgressSample]:
    """
    Extract the newest values from ffmpeg -progress output.

    Returns None until a frame= line is present. Later lines override
    earlier ones, so a partially written block still yields the last
    complete frame value.
    """
    latest: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep:
            continue
        value = value.strip()
        if key == "frame":
            try:
                int(value)
            except ValueError:
                continue
        latest[key] = value

    if "frame" not in latest:
        return None

    return ProgressSample(
        frame=int(latest["frame"]),
        bitrate=latest.get("bitrate", ""),
        fps=latest.get("fps", ""),
        out_time=latest.get("out_time", ""),
        speed=latest.get("speed", ""),
        state=latest.get("progress", "continue"),
    )


def compute_percent(frame: int, total_frames: int) -> int:
    """
    Percentage of total_frames reached by frame, clamped to [0, 100].

    A zero or negative total means the length is unknown; it is reported
    as complete rather than dividing by zero.
    """
    if total_frames <= 0:
        return 100
    pct = frame * 100 // total_frames
    return max(0, min(100, pct))


class StatusChannel:
    """The per-job file ffmpeg writes its progress into."""

    def __init__(self, directory: Path, name: Optional[str] = None):
        self.directory = Path(directory)
        self.path = self.directory / f"{name or os.getpid()}.vstat"

    def prepare(self) -> Path:
        """
        Create the private directory and drop any stale channel file.

        Only a directory created here is restricted to 0700; an existing
        one (possibly another user's) is used as it is.

        Raises:
            ChannelError: the directory cannot be created or written.
        """
        try:
            try:
                self.directory.mkdir(parents=True)
            except FileExistsError:
                pass
            else:
                os.chmod(self.directory, 0o700)
            self.remove()
        except OSError as e:
            raise ChannelError(f'Cannot use progress directory "{self.directory}".', str(e))
        return self.path

    def read(self) -> Optional[ProgressSample]:
        """Return the newest sample, or None if nothing usable was written yet."""
        try:
            text = self.path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        return parse_progress_text(text)

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)

    def __enter__(self) -> "StatusChannel":
        self.prepare()
        return self

    def __exit__(self, *exc) -> None:
        self.remove()


# Type alias for the sample callback
SampleCallback = Callable[[ProgressSample], None]


class ProgressMonitor:
    """Poll a status channel while an ffmpeg process runs."""

    def __init__(
        self,
        process: subprocess.Popen,
        channel: StatusChannel,
        total_frames: int,
        on_sample: Optional[SampleCallback] = None,
        interval: float = DEFAULT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.process = process
        self.channel = channel
        self.total_frames = total_frames
        self.on_sample = on_sample
        self.interval = interval
        self._sleep = sleep
        self.state = WAITING
        self.last_sample: Optional[ProgressSample] = None
        self.percent = 0

    def tick(self) -> Optional[ProgressSample]:
        """Read the channel once and deliver a sample if there is one."""
        sample = self.channel.read()
        if sample is None:
            return None

        # Never move the bar backwards within a job.
        self.percent = max(self.percent, compute_percent(sample.frame, self.total_frames))
        sample.percent = self.percent

        self.state = SAMPLING
        self.last_sample = sample
        if self.on_sample is not None:
            self.on_sample(sample)
        return sample

    def run(self) -> int:
        """Poll until the process exits. Returns its exit status."""
        while self.process.poll() is None:
            self.tick()
            self._sleep(self.interval)

        # Pick up the final block written just before exit.
        self.tick()
        self.state = DONE
        return self.process.wait()
