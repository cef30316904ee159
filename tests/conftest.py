"""
Pytest configuration and shared fixtures for ffbatch tests.
"""

import io
import sys
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


PROBE_OUTPUT_10S_30FPS = """\
[STREAM]
index=0
codec_name=h264
codec_type=video
width=1920
height=1080
avg_frame_rate=30/1
bit_rate=4500000
duration=10.000000
[/STREAM]
[STREAM]
index=1
codec_name=aac
codec_type=audio
sample_rate=48000
channels=2
avg_frame_rate=0/0
bit_rate=192000
duration=10.010000
[/STREAM]
[FORMAT]
format_name=mov,mp4,m4a,3gp,3g2,mj2
duration=10.010000
[/FORMAT]
"""


class FakeProcess:
    """Stand-in for subprocess.Popen that stays alive for alive_polls poll() calls."""

    def __init__(self, returncode: int = 0, alive_polls: int = 2, on_poll=None):
        self.returncode_final = returncode
        self.alive_polls = alive_polls
        self.on_poll = on_poll
        self.returncode: Optional[int] = None
        self.polls = 0
        self.killed = False
        self.terminated = False
        self.pid = 4242

    def poll(self) -> Optional[int]:
        self.polls += 1
        if self.on_poll is not None:
            self.on_poll(self.polls)
        if self.returncode is None and self.polls > self.alive_polls:
            self.returncode = self.returncode_final
        return self.returncode

    def wait(self, timeout: Optional[float] = None) -> int:
        if self.returncode is None:
            self.returncode = self.returncode_final
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        self.returncode = -15

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9


class FakeLauncher:
    """
    Replacement for ffbatch.encoder.launch.

    Writes the given progress text into the job's status channel and a
    partial output file, then returns a FakeProcess.
    """

    def __init__(self, returncode: int = 0, progress_text: str = "frame=300\nbitrate=1000.0kbits/s\nprogress=end\n"):
        self.returncode = returncode
        self.progress_text = progress_text
        self.jobs: List = []
        self.processes: List[FakeProcess] = []

    def __call__(self, job, log_path=None):
        self.jobs.append(job)
        Path(job.status_path).write_text(self.progress_text)
        job.partial_path.write_bytes(b"encoded")
        proc = FakeProcess(returncode=self.returncode)
        job.process = proc
        self.processes.append(proc)
        return proc


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_dir(temp_dir: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = temp_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def mock_xdg_dirs(temp_dir: Path, monkeypatch):
    """Mock XDG directories to use temporary paths."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(temp_dir / "state"))


@pytest.fixture
def default_config():
    """Return a default Config instance for testing."""
    from ffbatch.config import Config

    return Config()


@pytest.fixture
def probe_output() -> str:
    """ffprobe output for a 10 second, 30 fps file."""
    return PROBE_OUTPUT_10S_30FPS


@pytest.fixture
def batch_dirs(temp_dir: Path):
    """Source, destination and progress directories for a batch run."""
    src = temp_dir / "src"
    dst = temp_dir / "dst"
    src.mkdir()
    return src, dst, temp_dir / "progress"


@pytest.fixture
def batch_config(batch_dirs):
    """Library-mode config pointing at batch_dirs, polling without delay."""
    from ffbatch.config import Config

    src, dst, progress_dir = batch_dirs
    cfg = Config.for_library(
        src_dir=str(src),
        dst_dir=str(dst),
        ffmpeg_args="-c:v libx264 -crf 18",
        progress_dir=str(progress_dir),
        hwaccel=False,
        poll_interval=0,
    )
    # Keep each source file's own extension
    cfg.file_ext = None
    return cfg


@pytest.fixture
def text_ui():
    """A plain text UI writing into a StringIO."""
    from ffbatch.ui.legacy_ui import LegacyProgressUI

    return LegacyProgressUI(progress=False, color=False, stream=io.StringIO())


@pytest.fixture
def fake_launcher():
    return FakeLauncher()
