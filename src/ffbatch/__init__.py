"""
ffbatch - Batch video conversion with ffmpeg and a live progress bar.

Every supported video in a source directory is converted by one ffmpeg
run at a time; ffmpeg's -progress stream drives a terminal progress bar
and outputs are only renamed into place after a successful exit.

Example usage:
    # As a command-line tool
    $ ffbatch -src videos -dst out -ext mkv
    $ ffbatch --ffmpeg-args="-c:v libx265 -crf 24" --no-prompt

    # As a Python module
    from ffbatch import BatchRunner, Config
    from ffbatch.ui import LegacyProgressUI

    config = Config.for_library(src_dir="videos", dst_dir="out")
    result = BatchRunner(config, LegacyProgressUI(progress=False)).run()
"""

__version__ = "1.0.0"
__author__ = "ffbatch contributors"
__license__ = "MIT"
__url__ = "https://github.com/ffbatch/ffbatch"
__description__ = "Batch video conversion with ffmpeg and a live progress bar"

# Public API exports
from ffbatch.batch import SUPPORTED_EXTENSIONS, BatchResult, BatchRunner, collect_targets, resolve_total_frames
from ffbatch.config import Config, get_app_dirs, load_config_file
from ffbatch.encoder import EncodeJob, build_encode_cmd, have_hwaccel, launch, parse_rate_override
from ffbatch.errors import (
    ChannelError,
    EncodeError,
    FFBatchError,
    Interrupted,
    MissingDependencyError,
    NoFilesError,
    NoInputError,
    ProbeError,
    SourceDirError,
)
from ffbatch.probe import MediaInfo, parse_probe_output, probe_media
from ffbatch.progress import ProgressMonitor, ProgressSample, StatusChannel, compute_percent, parse_progress_text

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    "__url__",
    # Config
    "Config",
    "get_app_dirs",
    "load_config_file",
    # Batch
    "SUPPORTED_EXTENSIONS",
    "BatchResult",
    "BatchRunner",
    "collect_targets",
    "resolve_total_frames",
    # Encoder
    "EncodeJob",
    "build_encode_cmd",
    "have_hwaccel",
    "launch",
    "parse_rate_override",
    # Probe
    "MediaInfo",
    "parse_probe_output",
    "probe_media",
    # Progress
    "ProgressMonitor",
    "ProgressSample",
    "StatusChannel",
    "compute_percent",
    "parse_progress_text",
    # Errors
    "FFBatchError",
    "MissingDependencyError",
    "SourceDirError",
    "NoFilesError",
    "ProbeError",
    "NoInputError",
    "ChannelError",
    "EncodeError",
    "Interrupted",
]
