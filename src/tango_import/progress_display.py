"""
progress_display.py — Live status panel for the import stages.

Each stage decodes one archive. The panel shows the record count, how much
of the archive has been decompressed so far, and the throughput of both.
With ``enabled=False`` the same counters are kept but nothing is drawn, so
callers do not branch on --no-progress.

Usage:
    with jmdict.load() as input:
        with StageProgress("entries", stream=input) as progress:
            for n, entry in enumerate(JMdictDecoder(input), 1):
                progress.update(n)
"""

import time
from typing import Any, Dict, Optional

from rich import box
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


MB = 1024 * 1024


class StageProgress:
    """
    Context manager for one stage's live panel.

    ``stream`` is an optional ArchiveReader; its byte counters feed the
    "Decomp MB" / "Decomp Rate" rows.
    """

    def __init__(
        self,
        label: str,
        stream=None,
        enabled: bool = True,
        redraw_every: int = 1000,
        refresh_per_second: int = 10
    ):
        self.label = label
        self.stream = stream
        self.enabled = enabled
        self.redraw_every = redraw_every
        self.refresh_per_second = refresh_per_second

        self.count = 0
        self.start_time: float = 0
        self.live: Optional[Live] = None
        self._updates = 0

    def __enter__(self):
        self.start_time = time.time()
        if self.enabled:
            self.live = Live(self._render(), refresh_per_second=self.refresh_per_second)
            self.live.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.live:
            self.live.update(self._render())
            self.live.__exit__(exc_type, exc_val, exc_tb)
            self.live = None
        return False

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    def update(self, count: int):
        """Record the number of records decoded so far."""
        self.count = count
        self._updates += 1
        if self.live and self._updates % self.redraw_every == 0:
            self.live.update(self._render())

    def metrics(self) -> Dict[str, Any]:
        """Current panel rows, in display order."""
        elapsed = self.elapsed
        rows: Dict[str, Any] = {self.label.capitalize(): self.count}
        if elapsed > 0:
            rows["Rate"] = self.count / elapsed
        if self.stream is not None:
            decompressed = self.stream.total_decompressed / MB
            rows["Read MB"] = self.stream.total_compressed / MB
            rows["Decomp MB"] = decompressed
            if elapsed > 0:
                rows["Decomp Rate"] = decompressed / elapsed
        rows["Elapsed"] = elapsed
        return rows

    def _render(self) -> Panel:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(justify="left", no_wrap=True)
        grid.add_column(justify="right", no_wrap=True)
        for key, value in self.metrics().items():
            grid.add_row(
                Text(f"{key}:", style="bold grey50"),
                Text(format_value(key, value), style="bright_cyan"),
            )
        return Panel(grid, title=f"Decoding {self.label}", box=box.SIMPLE, border_style="bright_black")


def format_value(key: str, value: Any) -> str:
    """Format a panel value: [HH:]MM:SS for Elapsed, MB/s and records/s for rates."""
    if key == "Elapsed":
        hours, rest = divmod(int(value), 3600)
        minutes, seconds = divmod(rest, 60)
        if hours:
            return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
        return f"{minutes:02d}:{seconds:02d}"
    if key == "Decomp Rate":
        return f"{value:,.1f} MB/s"
    if key == "Rate":
        return f"{value:,.1f}/s"
    if isinstance(value, float):
        return f"{value:,.1f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)
