"""
Rich-based UI for ffbatch (sequential mode).

Same interface as LegacyProgressUI, rendered through rich.

Respects:
- NO_COLOR environment variable
- FFBATCH_SCRIPT_MODE environment variable
- sys.stdout.isatty() for automatic detection
"""

import os
import sys
from typing import List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskID, TextColumn, TimeElapsedColumn
from rich.prompt import Prompt
from rich.table import Table

from ffbatch.ui.legacy_ui import BAR_WIDTH, UIState, fmt_hms, restore_terminal


def _should_use_color() -> bool:
    """Check if color output should be used."""
    # https://no-color.org/
    if os.getenv("NO_COLOR"):
        return False
    if os.getenv("FFBATCH_SCRIPT_MODE"):
        return False
    try:
        if not sys.stdout.isatty():
            return False
    except Exception:
        return False
    return True


class SimpleRichUI:
    """Rich UI for sequential file processing."""

    def __init__(self, progress_enabled: bool = True, color: bool = True, bar_width: int = BAR_WIDTH):
        use_color = color and _should_use_color()
        self.console = Console(
            force_terminal=use_color if use_color else None,
            no_color=not use_color,
            highlight=False,
        )
        self.err_console = Console(stderr=True, no_color=not use_color, highlight=False)
        self.enabled = progress_enabled and use_color
        self.bar_width = bar_width

        self.ok = 0
        self.skipped = 0
        self.failed = 0
        self.processed = 0

        self.progress: Optional[Progress] = None
        self.current_task: Optional[TaskID] = None

    # ---- status lines ----

    def info(self, msg: str, detail: str = "") -> None:
        self.console.print(f"[cyan]{escape(msg)}[/cyan]" + (f" {escape(detail)}" if detail else ""))

    def warn(self, msg: str, detail: str = "") -> None:
        self.console.print(f"[yellow]{escape(msg)}[/yellow]" + (f" {escape(detail)}" if detail else ""))

    def success(self, msg: str, detail: str = "") -> None:
        self.console.print(f"[green]{escape(msg)}[/green]" + (f" {escape(detail)}" if detail else ""))

    def error(self, msg: str) -> None:
        if msg:
            self.err_console.print(f"[red]{escape(msg)}[/red]")

    def log(self, msg: str, style: str = "") -> None:
        """Print a log message."""
        if style:
            self.console.print(msg, style=style)
        else:
            self.console.print(msg)

    def banner(self, title: str) -> None:
        self.console.print()
        self.console.rule(f"[bold]{title}[/bold]")
        self.console.print()

    def media_info(self, rows: List[Tuple[str, str]]) -> None:
        table = Table(box=None, show_header=False, padding=(0, 2, 0, 0))
        table.add_column("Field", style="dim")
        table.add_column("Value")
        for label, value in rows:
            table.add_row(f"{label}:", escape(value))
        self.console.print()
        self.console.print(table)
        self.console.print()

    def prompt(self, message: str, default: str) -> str:
        return Prompt.ask(f"[cyan]{message}[/cyan]", default=default, console=self.console)

    # ---- progress ----

    def start_progress(self, total: int, label: str = "FFMPEG") -> None:
        if not self.enabled:
            return
        self.progress = Progress(
            TextColumn(f"[bold green]{label}[/bold green]"),
            BarColumn(bar_width=self.bar_width),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("•"),
            TextColumn("[cyan]{task.fields[frames]}[/cyan]"),
            TextColumn("•"),
            TextColumn("{task.fields[bitrate]}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self.current_task = self.progress.add_task(label, total=100, frames=f"0/{total}", bitrate="")
        self.progress.start()

    def render(self, st: UIState) -> None:
        if self.progress is None or self.current_task is None:
            return
        self.progress.update(
            self.current_task,
            completed=st.pct,
            frames=f"{st.frame}/{st.total}",
            bitrate=st.bitrate or "0kbits/s",
        )

    def finish_progress(self) -> None:
        if self.progress is not None:
            self.progress.stop()
        self.progress = None
        self.current_task = None

    def restore(self) -> None:
        self.finish_progress()
        if self.enabled:
            restore_terminal(self.console.file)

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
        """Print final summary."""
        self.console.print()

        table = Table(title="Summary", box=None, show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("✓ Converted", f"[green]{self.ok}[/green]")
        table.add_row("⊘ Skipped", f"[yellow]{self.skipped}[/yellow]")
        table.add_row("✗ Failed", f"[red]{self.failed}[/red]")
        table.add_row("⏱ Total time", fmt_hms(total_time))

        self.console.print(table)
