"""
Plain text UI for ffbatch.

ANSI colored status lines and an in-place progress panel. Used when rich
is not installed, and for its helpers (fmt_hms, render_bar) everywhere.
"""

import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO, Tuple

RED = "\033[31m"
GREEN = "\033[32m"
CYAN = "\033[36m"
YELLOW = "\033[33m"
BOLD = "\033[1m"
RESET = "\033[0m"

HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
CLEAR_LINE = "\033[2K\r"

BAR_WIDTH = 40


def fmt_hms(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    if seconds < 0:
        seconds = 0
    s = int(round(seconds))
    h = s // 3600
    m = (s % 3600) // 60
    r = s % 60
    return f"{h:02d}:{m:02d}:{r:02d}"


def render_bar(pct: int, width: int = BAR_WIDTH) -> str:
    """
    Build the bar body for a percentage.

    Two columns are always filled so the bar is visible at 0%; a '>' head
    marks the front until 100%.
    """
    pct = max(0, min(100, pct))
    fill_len = (pct * (width - 2) // 100) + 2
    head = ">" if pct < 100 else ""
    empty = max(0, width - fill_len - len(head))
    return "=" * fill_len + head + " " * empty


def restore_terminal(stream: Optional[TextIO] = None) -> None:
    """Show the cursor and reset colors."""
    stream = stream or sys.stdout
    try:
        stream.write(SHOW_CURSOR + RESET)
        stream.flush()
    except (OSError, ValueError):
        pass


@dataclass
class UIState:
    """What the progress panel shows for one tick."""

    frame: int
    total: int
    bitrate: str
    pct: int


class LegacyProgressUI:
    """Colored text output with a redraw-in-place progress panel."""

    # Frame, Bitrate, bar
    PANEL_LINES = 3

    def __init__(self, progress: bool = True, color: bool = True, bar_width: int = BAR_WIDTH, stream=None):
        self.stream = stream or sys.stdout
        self.err_stream = sys.stderr if stream is None else stream
        try:
            is_tty = self.stream.isatty()
        except (AttributeError, ValueError):
            is_tty = False
        self.enabled = progress and is_tty
        self.color = color and is_tty
        self.bar_width = bar_width
        self._drawn = False
        self._label = "FFMPEG"

        self.ok = 0
        self.skipped = 0
        self.failed = 0
        self.processed = 0

    def _c(self, code: str, text: str) -> str:
        return f"{code}{text}{RESET}" if self.color else text

    # ---- status lines ----

    def info(self, msg: str, detail: str = "") -> None:
        self.stream.write(self._c(CYAN, msg) + (f" {detail}" if detail else "") + "\n")
        self.stream.flush()

    def warn(self, msg: str, detail: str = "") -> None:
        self.stream.write(self._c(YELLOW, msg) + (f" {detail}" if detail else "") + "\n")
        self.stream.flush()

    def success(self, msg: str, detail: str = "") -> None:
        self.stream.write(self._c(GREEN, msg) + (f" {detail}" if detail else "") + "\n")
        self.stream.flush()

    def error(self, msg: str) -> None:
        if not msg:
            return
        self.err_stream.write(self._c(RED, msg) + "\n")
        self.err_stream.flush()

    def log(self, msg: str) -> None:
        self.stream.write(msg + "\n")
        self.stream.flush()

    def banner(self, title: str) -> None:
        line = "#" * (len(title) + 6)
        self.log("")
        self.log(f" {line}")
        self.log(f" ## {title} ##")
        self.log(f" {line}")
        self.log("")

    def media_info(self, rows: List[Tuple[str, str]]) -> None:
        self.log("")
        for label, value in rows:
            self.log(f"{label + ':':<20}{value}")
        self.log("")

    def prompt(self, message: str, default: str) -> str:
        self.stream.write(f"{self._c(CYAN, message)} [{default}]: ")
        self.stream.flush()
        answer = sys.stdin.readline().strip()
        return answer or default

    # ---- progress panel ----

    def start_progress(self, total: int, label: str = "FFMPEG") -> None:
        self._label = label
        self._drawn = False
        if self.enabled:
            self.stream.write("\n" + HIDE_CURSOR)
            self.stream.flush()

    def render(self, st: UIState) -> None:
        """Redraw the panel in place."""
        if not self.enabled:
            return
        if self._drawn:
            self.stream.write(f"\033[{self.PANEL_LINES}A")
        bar = render_bar(st.pct, self.bar_width)
        label = self._c(GREEN + BOLD, self._label)
        lines = [
            f"Frame:   {st.frame}/{st.total}",
            f"Bitrate: {st.bitrate or '0kbits/s'}",
            f"{label} [{self._c(CYAN, bar)}] {self._c(GREEN, f'{st.pct}%')}",
        ]
        for line in lines:
            self.stream.write(CLEAR_LINE + line + "\n")
        self.stream.flush()
        self._drawn = True

    def finish_progress(self) -> None:
        """Wipe the panel and restore the cursor."""
        if not self.enabled:
            return
        if self._drawn:
            self.stream.write(f"\033[{self.PANEL_LINES}A")
            for _ in range(self.PANEL_LINES):
                self.stream.write(CLEAR_LINE + "\n")
            self.stream.write(f"\033[{self.PANEL_LINES}A")
        self._drawn = False
        restore_terminal(self.stream)

    def restore(self) -> None:
        if self.enabled or self.color:
            restore_terminal(self.stream)

    # ---- stats ----

    def inc_ok(self) -> None:
        """Increment success counter."""
        self.ok += 1
        self.processed += 1

    def inc_skipped(self) -> None:
        """Increment skipped counter."""
        self.skipped += 1
        self.processed += 1

    def inc_failed(self) -> None:
        """Increment failed counter."""
        self.failed += 1
        self.processed += 1

    def get_stats(self):
        """Get current stats."""
        return (self.ok, self.skipped, self.failed, self.processed)

    def print_summary(self, total_time: float) -> None:
        self.log("")
        self.log("=== Summary ===")
        self.log(f"Converted: {self.ok}")
        self.log(f"Skipped: {self.skipped}")
        self.log(f"Failed: {self.failed}")
        self.log(f"Total time: {fmt_hms(total_time)}")
