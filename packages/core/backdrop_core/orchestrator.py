"""Per-display wallpaper runs: compose, save, assign."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from backdrop_compositor import DisplayTarget, PipelineError, PixelBuffer, compose_wallpaper, load_image, save_image
from backdrop_displays import DisplayError, DisplayProbeError, MonitorInfo, WallpaperSetError, list_monitors, set_wallpaper

from .config import AppConfig
from .staging import SourceError, resolve_source, stage_output

_LOGGER = logging.getLogger("backdrop.orchestrator")

TIMED_OUT = "timed out"


class _Expired(Exception):
    pass


@dataclass
class DisplayResult:
    display: int
    width: int
    height: int
    output_path: str | None = None
    ok: bool = False
    error: str | None = None
    duration_s: float = 0.0


class WallpaperOrchestrator:
    def __init__(
        self,
        cfg: AppConfig | None = None,
        monitors: Callable[[], list[MonitorInfo]] | None = None,
        setter: Callable[[Path, int], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cfg = cfg or AppConfig()
        self._monitors = monitors or list_monitors
        self._setter = setter or set_wallpaper
        self._sleep = sleep
        self._clock = clock

    def output_dir(self) -> Path:
        if self.cfg.output.directory:
            return Path(self.cfg.output.directory).expanduser()
        return Path.cwd()

    def select_monitors(self, display_number: int | None = None) -> list[MonitorInfo]:
        monitors = self._monitors()
        if not monitors:
            raise DisplayProbeError("No displays found")
        if display_number is None:
            return monitors
        if display_number < 1 or display_number > len(monitors):
            raise DisplayProbeError(f"Monitor number must be between 1 and {len(monitors)}")
        return [monitors[display_number - 1]]

    def apply(
        self,
        source_path: Path | str,
        display_number: int | None = None,
        timeout_s: float | None = None,
    ) -> list[DisplayResult]:
        """Compose and assign a wallpaper for each selected display.

        With ``timeout_s`` set, displays not finished by the deadline are
        reported as timed out. Their workers stop before assigning the
        wallpaper.
        """
        source = resolve_source(source_path)
        targets = self.select_monitors(display_number)
        _LOGGER.info(
            "Setting background from %s on %s monitor(s)", source, len(targets), extra={"event": "apply_start"}
        )

        # Decoded once; the buffer is read-only and shared by every display run.
        buffer = load_image(source)
        timestamp = int(self._clock())
        out_dir = self.output_dir()
        expired = threading.Event()

        workers = min(self.cfg.workers.max_workers, len(targets))
        if workers <= 1:
            deadline = None if timeout_s is None else time.monotonic() + timeout_s
            results = []
            for monitor in targets:
                if deadline is not None and time.monotonic() >= deadline:
                    expired.set()
                if expired.is_set():
                    results.append(self._timed_out(monitor))
                    continue
                results.append(self._apply_one(source, buffer, monitor, timestamp, out_dir, expired))
        else:
            pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="backdrop")
            try:
                futures = {
                    pool.submit(self._apply_one, source, buffer, m, timestamp, out_dir, expired): m for m in targets
                }
                done, pending = wait(futures, timeout=timeout_s)
                if pending:
                    expired.set()
                results = [f.result() for f in done]
                results.extend(self._timed_out(futures[f]) for f in pending)
            finally:
                pool.shutdown(wait=False, cancel_futures=True)

        results.sort(key=lambda r: r.display)
        failed = [r.display for r in results if not r.ok]
        _LOGGER.info(
            "apply finished ok=%s failed=%s", len(results) - len(failed), failed, extra={"event": "apply_done"}
        )
        return results

    def _timed_out(self, monitor: MonitorInfo) -> DisplayResult:
        _LOGGER.warning(
            "Monitor %s - %s", monitor.id, TIMED_OUT, extra={"event": "display_timeout", "display": monitor.id}
        )
        return DisplayResult(display=monitor.id, width=monitor.width, height=monitor.height, error=TIMED_OUT)

    def _apply_one(
        self,
        source: Path,
        buffer: PixelBuffer,
        monitor: MonitorInfo,
        timestamp: int,
        out_dir: Path,
        expired: threading.Event | None = None,
    ) -> DisplayResult:
        result = DisplayResult(display=monitor.id, width=monitor.width, height=monitor.height)
        start = time.perf_counter()
        try:
            target_path = stage_output(
                source,
                monitor.id,
                out_dir,
                timestamp=timestamp,
                template=self.cfg.output.filename_template,
                fmt=self.cfg.output.format,
            )
            if buffer.size != (monitor.width, monitor.height):
                _LOGGER.info(
                    "Monitor %s - Image size %sx%s differs from monitor %sx%s, composing",
                    monitor.id,
                    buffer.width,
                    buffer.height,
                    monitor.width,
                    monitor.height,
                    extra={"event": "compose_start", "display": monitor.id},
                )
            target = DisplayTarget(width=monitor.width, height=monitor.height, index=monitor.id, name=monitor.name)
            composed = compose_wallpaper(buffer, target, blur_divisor=self.cfg.compose.blur_divisor)
            save_image(composed, target_path, fmt=self.cfg.output.format, quality=self.cfg.output.quality)
            if expired is not None and expired.is_set():
                raise _Expired(TIMED_OUT)
            self._set_with_retry(target_path, monitor.id)
        except _Expired as exc:
            result.error = str(exc)
            _LOGGER.warning(
                "Monitor %s - deadline passed, wallpaper left unchanged",
                monitor.id,
                extra={"event": "display_abandoned", "display": monitor.id},
            )
        except (PipelineError, SourceError, DisplayError) as exc:
            result.error = str(exc)
            _LOGGER.error("Monitor %s - %s", monitor.id, exc, extra={"event": "display_failed", "display": monitor.id})
        else:
            result.ok = True
            result.output_path = str(target_path)
        result.duration_s = time.perf_counter() - start
        return result

    def _set_with_retry(self, path: Path, display_number: int) -> None:
        attempts = self.cfg.wallpaper.retries + 1
        for attempt in range(attempts):
            try:
                self._setter(path, display_number)
                return
            except WallpaperSetError as exc:
                if attempt == attempts - 1:
                    raise
                delay = self.cfg.wallpaper.backoff_s * (2**attempt)
                _LOGGER.warning(
                    "Monitor %s - wallpaper set failed (%s), retrying in %.2fs",
                    display_number,
                    exc,
                    delay,
                    extra={"event": "wallpaper_retry", "display": display_number},
                )
                self._sleep(delay)

    def compose_file(self, source_path: Path | str, width: int, height: int, output_path: Path | str) -> Path:
        source = resolve_source(source_path)
        try:
            output = Path(output_path).expanduser().resolve()
        except OSError as exc:
            raise SourceError(f"Invalid output path '{output_path}': {exc}") from exc
        if output == source:
            raise SourceError(f"Output path {output} would overwrite the source image")
        buffer = load_image(source)
        composed = compose_wallpaper(
            buffer, DisplayTarget(width=width, height=height), blur_divisor=self.cfg.compose.blur_divisor
        )
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SourceError(f"Cannot create output directory '{output.parent}': {exc}") from exc
        return save_image(composed, output, quality=self.cfg.output.quality)
