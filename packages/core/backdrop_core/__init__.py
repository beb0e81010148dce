"""Core app services for settings, logging, staging, orchestration, and performance."""

from .config import AppConfig, config_path, load_config, save_config
from .orchestrator import DisplayResult, WallpaperOrchestrator
from .performance import BudgetStatus, PerformanceController, PerformanceTargets
from .staging import SourceError, resolve_source, stage_output, target_filename

__all__ = [
    "AppConfig",
    "BudgetStatus",
    "DisplayResult",
    "PerformanceController",
    "PerformanceTargets",
    "SourceError",
    "WallpaperOrchestrator",
    "config_path",
    "load_config",
    "resolve_source",
    "save_config",
    "stage_output",
    "target_filename",
]
