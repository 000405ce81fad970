"""
Screenshot capture and baseline comparison used by assertion instrumentation.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from .constants import DEFAULT_SCREENSHOT_DIR
from .exceptions import CaptureFailedError

logger = logging.getLogger(__name__)


@dataclass
class ScreenshotCaptureOptions:
    output_dir: str = DEFAULT_SCREENSHOT_DIR
    name_prefix: str = "capture"
    update_baselines: bool = False
    """Overwrite existing baselines instead of comparing against them."""
    screenshot_kwargs: dict[str, Any] | None = None
    """Extra keyword arguments passed to ``subject.screenshot()`` (e.g. ``animations``)."""


@dataclass
class _CaptureRecord:
    ts: float
    name: str
    status: Literal["matched", "baseline_written", "mismatch"]
    baseline: str
    actual: str | None = None


def _slug(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", text).strip("_") or "capture"


class ScreenshotCapture:
    """
    Capture-and-compare primitive used after instrumented assertions.

    Each call screenshots the subject (a Locator or a Page) and compares the
    bytes with ``<output_dir>/<prefix>-<n>.png``:

    - no baseline yet: the screenshot becomes the baseline and CaptureFailedError is raised
    - identical bytes: nothing else happens
    - different bytes: ``<prefix>-<n>-actual.png`` is written and CaptureFailedError is raised

    A ``<prefix>.captures.json`` manifest in ``output_dir`` lists every capture.
    """

    def __init__(
        self,
        options: ScreenshotCaptureOptions | None = None,
        *,
        time_fn: Callable[[], float] = time.time,
    ) -> None:
        self.options = options or ScreenshotCaptureOptions()
        self._time_fn = time_fn
        self._count = 0
        self._records: list[_CaptureRecord] = []

    @property
    def output_dir(self) -> Path:
        return Path(self.options.output_dir)

    @property
    def capture_count(self) -> int:
        return self._count

    async def __call__(self, subject: Any) -> Path:
        self._count += 1
        name = f"{_slug(self.options.name_prefix)}-{self._count}"
        image = await subject.screenshot(**(self.options.screenshot_kwargs or {}))
        return self._compare(name, image)

    def _compare(self, name: str, image: bytes) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        baseline = self.output_dir / f"{name}.png"

        if self.options.update_baselines or not baseline.exists():
            baseline.write_bytes(image)
            self._record(name, "baseline_written", baseline)
            logger.debug(f"Wrote screenshot baseline {baseline}")
            if not self.options.update_baselines:
                raise CaptureFailedError(f"No baseline for {name}; wrote {baseline}")
            return baseline

        if baseline.read_bytes() == image:
            self._record(name, "matched", baseline)
            return baseline

        actual = self.output_dir / f"{name}-actual.png"
        actual.write_bytes(image)
        self._record(name, "mismatch", baseline, actual)
        raise CaptureFailedError(f"Screenshot {name} differs from baseline {baseline}; wrote {actual}")

    def _record(
        self,
        name: str,
        status: Literal["matched", "baseline_written", "mismatch"],
        baseline: Path,
        actual: Path | None = None,
    ) -> None:
        self._records.append(
            _CaptureRecord(
                ts=self._time_fn(),
                name=name,
                status=status,
                baseline=baseline.name,
                actual=actual.name if actual is not None else None,
            )
        )
        self._write_json_atomic(
            self.output_dir / f"{_slug(self.options.name_prefix)}.captures.json",
            [record.__dict__ for record in self._records],
        )

    def _write_json_atomic(self, path: Path, data: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2))
        tmp_path.replace(path)
