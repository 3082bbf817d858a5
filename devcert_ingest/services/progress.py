from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""Percent progress bar for the chunked parser (tqdm, TTY only).

The parser reports an integer percent after each batch. Off a terminal (CI,
redirected output) no bar is built and every call is a no-op, so ANSI control
sequences never end up in captured logs.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


def _make_bar(label: str) -> tqdm:
    return tqdm(
        total=100,
        desc=label,
        unit="%",
        disable=False,
        leave=True,
        position=0,
        ncols=80,
        ascii=True,
    )


class ProgressTracker:
    """Track one file's parse progress; ``update_percent`` is the parser callback."""

    def __init__(self, file_name: str, *, description: str = "Parsing") -> None:
        self.file_name = file_name
        self.description = description
        self.percent = 0
        self.enabled = is_tty_enabled()
        self.pbar: tqdm | None = _make_bar(f"{description} ({file_name})") if self.enabled else None

    def update_percent(self, percent: int) -> None:
        target = min(100, max(0, percent))
        if target <= self.percent:
            return
        step, self.percent = target - self.percent, target
        if self.pbar is not None:
            self.pbar.update(step)

    def set_postfix(self, **fields: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**fields)

    def close(self) -> None:
        if self.pbar is None:
            return
        self.pbar.close()
        self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
