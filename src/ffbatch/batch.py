"""
Sequential batch conversion for ffbatch.

For every supported source file: skip it when its output already exists,
probe it, launch ffmpeg, follow the progress channel until ffmpeg exits,
then promote the partial output to its final name. One job at a time.
"""

import datetime
import os
import re
import shlex
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ffbatch.config import Config
from ffbatch.encoder import EncodeJob, build_encode_cmd, have_hwaccel, launch, parse_rate_override, stop
from ffbatch.errors import EncodeError, Interrupted, NoFilesError, SourceDirError
from ffbatch.probe import MediaInfo, describe, probe_frame_count, probe_media
from ffbatch.progress import ProgressMonitor, ProgressSample, StatusChannel
from ffbatch.ui.legacy_ui import UIState

SUPPORTED_EXTENSIONS = ("mp4", "avi", "mov", "mkv")


# -------------------- FILE SELECTION --------------------


def collect_targets(src_dir: Path, extensions: Sequence[str] = SUPPORTED_EXTENSIONS) -> List[Path]:
    """
    List source files, grouped by extension in the given order.

    Only regular files directly inside src_dir are returned, each once.
    """
    targets: List[Path] = []
    seen = set()
    for ext in extensions:
        for path in sorted(Path(src_dir).glob(f"*.{ext}")):
            if not path.is_file() or path in seen:
                continue
            seen.add(path)
            targets.append(path)
    return targets


def resolve_total_frames(info: MediaInfo, ffmpeg_args: str, fallback_frames: Optional[int] = None) -> int:
    """
    Expected number of output frames.

    A ``-r N`` in the user arguments replaces the source frame rate.
    When rate x duration is zero, fallback_frames (the container's own
    frame count) is used if known.
    """
    fps = parse_rate_override(ffmpeg_args)
    if fps is None:
        fps = info.fps or 0
    total = fps * (info.duration or 0)
    if total <= 0 and fallback_frames:
        return fallback_frames
    return total


def get_log_path(logs_dir: Path, source: Path) -> Path:
    """Per-file ffmpeg log path."""
    logs_dir.mkdir(parents=True, exist_ok=True)
    date_str = datetime.date.today().isoformat()
    safe_name = re.sub(r"[^\w\-.]", "_", source.stem)[:80]
    return logs_dir / f"{date_str}_{safe_name}.log"


# -------------------- RUNNER --------------------


@dataclass
class BatchResult:
    """Counts for one batch run."""

    ok: int = 0
    skipped: int = 0
    failed: int = 0
    interrupted: bool = False


def _raise_interrupt(_sig, _frm):
    raise KeyboardInterrupt


class BatchRunner:
    """Runs one batch, one ffmpeg job at a time."""

    def __init__(
        self,
        cfg: Config,
        ui,
        logs_dir: Optional[Path] = None,
        probe: Callable[[Path], MediaInfo] = probe_media,
        frame_counter: Callable[[Path], Optional[int]] = probe_frame_count,
        hwaccel_check: Callable[[str], bool] = have_hwaccel,
        launcher: Callable = launch,
    ):
        self.cfg = cfg
        self.ui = ui
        self.logs_dir = logs_dir
        self._probe = probe
        self._frame_counter = frame_counter
        self._hwaccel_check = hwaccel_check
        self._launch = launcher

        self.channel = StatusChannel(Path(cfg.progress_dir))
        self.current_job: Optional[EncodeJob] = None
        self.hwaccel: Optional[str] = None

    # ---- setup ----

    def validate(self) -> List[Path]:
        """Check the source directory and return the files to process."""
        src_dir = Path(self.cfg.src_dir or "")
        if not src_dir.is_dir():
            raise SourceDirError(
                f'Source directory "{src_dir}" does not exist. Please provide a valid source directory.'
            )
        targets = collect_targets(src_dir)
        if not targets:
            raise NoFilesError(f'No supported video files found in the source directory "{src_dir}".')
        return targets

    def detect_hwaccel(self) -> Optional[str]:
        if not self.cfg.hwaccel:
            return None
        name = self.cfg.hwaccel_name
        return name if self._hwaccel_check(name) else None

    # ---- main loop ----

    def run(self) -> BatchResult:
        """
        Process every target.

        Raises:
            SourceDirError, NoFilesError: before any job starts.
            ProbeError: a source file has no readable duration/fps.
            Interrupted: SIGINT/SIGHUP while running.
        """
        targets = self.validate()
        Path(self.cfg.dst_dir or "").mkdir(parents=True, exist_ok=True)
        self.hwaccel = self.detect_hwaccel()
        if self.cfg.debug:
            self.ui.log(f"hwaccel: {self.hwaccel or 'none'}")

        result = BatchResult()
        old_hup = None
        if hasattr(signal, "SIGHUP"):
            old_hup = signal.signal(signal.SIGHUP, _raise_interrupt)
        try:
            for idx, source in enumerate(targets, start=1):
                status = self.process_file(source, idx, len(targets))
                if status == "ok":
                    result.ok += 1
                elif status == "skipped":
                    result.skipped += 1
                else:
                    result.failed += 1
        except KeyboardInterrupt:
            self.abort()
            result.interrupted = True
            raise Interrupted("Interrupted by user.")
        finally:
            if old_hup is not None:
                signal.signal(signal.SIGHUP, old_hup)
        return result

    def output_ext(self, source: Path) -> str:
        return self.cfg.file_ext or source.suffix.lstrip(".")

    def process_file(self, source: Path, idx: int, total: int) -> str:
        """Run one job. Returns "ok", "skipped" or "failed"."""
        self.ui.info(f"\nProcessing file {idx}/{total}:", str(source))

        job = EncodeJob.create(
            source,
            Path(self.cfg.dst_dir or ""),
            self.output_ext(source),
            self.cfg.ffmpeg_args or "",
            self.channel.path,
            hwaccel=self.hwaccel,
        )

        if job.final_path.exists():
            self.ui.warn("File skipped:", f"{job.final_path} exists.")
            self.ui.inc_skipped()
            return "skipped"

        if self.cfg.dryrun:
            self.ui.log(f"DRYRUN: {shlex.join(build_encode_cmd(job))}")
            self.ui.inc_skipped()
            return "skipped"

        # Fatal for the whole run, see ProbeError.
        info = self._probe(source)
        self.ui.media_info(describe(info))

        fallback = None
        if (info.fps or 0) * (info.duration or 0) <= 0:
            fallback = self._frame_counter(source)
        job.total_frames = resolve_total_frames(info, job.ffmpeg_args, fallback)

        self.ui.info("FFMPEG ARGS:", f"{job.ffmpeg_args} -f {job.ext}")

        try:
            self.encode(job)
        except EncodeError as e:
            self.ui.error(e.message)
            if e.details:
                self.ui.error(e.details)
            self.ui.error(f"Conversion failed for {source.stem}")
            self.ui.inc_failed()
            return "failed"

        self.ui.success("\nOutput file:", str(job.final_path))
        self.ui.inc_ok()
        return "ok"

    def encode(self, job: EncodeJob) -> None:
        """
        Launch ffmpeg, show progress, and finalize the output.

        Raises EncodeError when ffmpeg fails or the output cannot be moved
        into place; the partial file is left on disk in that case.
        """
        log_path = get_log_path(self.logs_dir, job.source) if self.logs_dir else None
        if self.cfg.debug:
            self.ui.log(f"CMD: {shlex.join(build_encode_cmd(job))}")

        self.current_job = job
        self.channel.prepare()
        try:
            process = self._launch(job, log_path)

            def on_sample(sample: ProgressSample) -> None:
                self.ui.render(UIState(sample.frame, job.total_frames, sample.bitrate, sample.percent))

            self.ui.start_progress(job.total_frames)
            try:
                monitor = ProgressMonitor(
                    process, self.channel, job.total_frames, on_sample, interval=self.cfg.poll_interval
                )
                rc = monitor.run()
            finally:
                self.ui.finish_progress()
        finally:
            self.channel.remove()

        self.current_job = None

        if rc != 0:
            details = f"See log: {log_path}" if log_path else ""
            raise EncodeError("FFMPEG processing failed. An error occurred.", returncode=rc, details=details)
        self.ui.success("FFMPEG processing completed.")

        try:
            os.replace(job.partial_path, job.final_path)
        except OSError as e:
            raise EncodeError(f"Could not rename {job.partial_path}: {e}", returncode=rc)

    def abort(self) -> None:
        """Stop the running job after an interrupt. The partial file stays."""
        job = self.current_job
        if job is not None:
            stop(job.process, force=True)
        self.channel.remove()
        self.ui.restore()
        self.current_job = None


def run_batch(cfg: Config, ui, logs_dir: Optional[Path] = None) -> BatchResult:
    """Convenience wrapper: run a batch with the default collaborators."""
    start = time.time()
    result = BatchRunner(cfg, ui, logs_dir=logs_dir).run()
    ui.print_summary(time.time() - start)
    return result
