"""Compose-time resource budgeting."""

from __future__ import annotations

from dataclasses import dataclass

import psutil


@dataclass(frozen=True)
class PerformanceTargets:
    cpu_percent_max: float = 400.0
    rss_mb_max: float = 1024.0
    compose_seconds_max: float = 5.0


@dataclass(frozen=True)
class BudgetStatus:
    cpu_percent: float
    rss_mb: float
    compose_seconds: float
    overloaded: bool
    warning: str | None


class PerformanceController:
    def __init__(self, targets: PerformanceTargets | None = None) -> None:
        self.targets = targets or PerformanceTargets()
        self._process = psutil.Process()
        # Prime non-blocking CPU measurement.
        self._process.cpu_percent(interval=None)

    def sample(self, compose_seconds: float) -> BudgetStatus:
        cpu = float(self._process.cpu_percent(interval=None))
        rss_mb = float(self._process.memory_info().rss) / (1024 * 1024)
        overloaded = cpu > self.targets.cpu_percent_max or rss_mb > self.targets.rss_mb_max

        warning = None
        if overloaded:
            warning = "resource_overload"
        elif compose_seconds > self.targets.compose_seconds_max:
            warning = "slow_compose"

        return BudgetStatus(
            cpu_percent=cpu,
            rss_mb=rss_mb,
            compose_seconds=float(compose_seconds),
            overloaded=overloaded,
            warning=warning,
        )
