"""Helpers to persist screenshots taken when a panel session fails."""

from __future__ import annotations

import datetime as dt
from pathlib import Path


def artifacts_dir(root: Path) -> Path:
    path = root.resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


async def save_screenshot(page, root: Path, label: str) -> Path:
    ts = dt.datetime.now().strftime("%Y%m%d-%H%M%S")
    path = artifacts_dir(root) / f"{ts}-{label}.png"
    await page.screenshot(path=str(path), full_page=True)
    return path
