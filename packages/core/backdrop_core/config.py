"""Persistent app settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 2
OUTPUT_FORMATS = ("JPEG", "PNG", "BMP", "WEBP")


@dataclass
class OutputConfig:
    directory: str | None = None
    filename_template: str = "{display}_{timestamp}.{ext}"
    format: str = "JPEG"
    quality: int = 92


@dataclass
class ComposeConfig:
    blur_divisor: int = 40


@dataclass
class WorkersConfig:
    max_workers: int = 4


@dataclass
class WallpaperConfig:
    retries: int = 2
    backoff_s: float = 0.5


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class PerformanceConfig:
    cpu_percent_max: float = 400.0
    rss_mb_max: float = 1024.0
    compose_seconds_max: float = 5.0


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    output: OutputConfig = field(default_factory=OutputConfig)
    compose: ComposeConfig = field(default_factory=ComposeConfig)
    workers: WorkersConfig = field(default_factory=WorkersConfig)
    wallpaper: WallpaperConfig = field(default_factory=WallpaperConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "Backdrop"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "Backdrop"
    return Path.home() / ".config" / "backdrop"


def config_path() -> Path:
    override = os.environ.get("BACKDROP_CONFIG")
    if override:
        return Path(override).expanduser()
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_output(cfg: AppConfig) -> None:
    fmt = str(cfg.output.format).upper()
    cfg.output.format = fmt if fmt in OUTPUT_FORMATS else "JPEG"
    cfg.output.quality = max(1, min(95, int(cfg.output.quality)))
    if "{display}" not in cfg.output.filename_template:
        cfg.output.filename_template = OutputConfig.filename_template


def _normalize_compose(cfg: AppConfig) -> None:
    cfg.compose.blur_divisor = max(1, int(cfg.compose.blur_divisor))


def _normalize_workers(cfg: AppConfig) -> None:
    cfg.workers.max_workers = max(1, min(32, int(cfg.workers.max_workers)))


def _normalize_wallpaper(cfg: AppConfig) -> None:
    cfg.wallpaper.retries = max(0, min(5, int(cfg.wallpaper.retries)))
    cfg.wallpaper.backoff_s = float(max(0.0, min(10.0, cfg.wallpaper.backoff_s)))


def _normalize_performance(cfg: AppConfig) -> None:
    cfg.performance.cpu_percent_max = float(max(1.0, cfg.performance.cpu_percent_max))
    cfg.performance.rss_mb_max = float(max(64.0, cfg.performance.rss_mb_max))
    cfg.performance.compose_seconds_max = float(max(0.1, cfg.performance.compose_seconds_max))


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 1))
    data = dict(raw)

    if version < 2:
        # v1 kept a flat "blur_divisor" and "jpeg_quality" at the top level.
        compose = dict(data.get("compose", {}) or {})
        if "blur_divisor" in data:
            compose.setdefault("blur_divisor", data.pop("blur_divisor"))
        data["compose"] = compose
        output = dict(data.get("output", {}) or {})
        if "jpeg_quality" in data:
            output.setdefault("quality", data.pop("jpeg_quality"))
        data["output"] = output
        data.setdefault("wallpaper", {})
        data.setdefault("performance", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        output=_merge(OutputConfig, data.get("output", {})),
        compose=_merge(ComposeConfig, data.get("compose", {})),
        workers=_merge(WorkersConfig, data.get("workers", {})),
        wallpaper=_merge(WallpaperConfig, data.get("wallpaper", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
        performance=_merge(PerformanceConfig, data.get("performance", {})),
    )

    _normalize_output(cfg)
    _normalize_compose(cfg)
    _normalize_workers(cfg)
    _normalize_wallpaper(cfg)
    _normalize_performance(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
