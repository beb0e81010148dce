"""CLI entrypoints for Backdrop: list displays, set wallpapers, compose offline, benchmark."""

from __future__ import annotations

import argparse
import json
import re
import sys
import time
from dataclasses import asdict

from backdrop_compositor import DisplayTarget, PipelineError, compose_wallpaper, load_image
from backdrop_core import (
    PerformanceController,
    PerformanceTargets,
    SourceError,
    WallpaperOrchestrator,
    config_path,
    load_config,
    resolve_source,
)
from backdrop_core.logging_setup import configure_logging, get_logger
from backdrop_displays import DisplayError, list_monitors

_SIZE_RE = re.compile(r"^\s*(\d+)\s*[x×]\s*(\d+)\s*$", re.IGNORECASE)


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _fail(message: str, code: int = 1) -> int:
    print(f"Error: {message}", file=sys.stderr)
    get_logger().error(message, extra={"event": "cli_error"})
    return code


def parse_size(value: str) -> tuple[int, int]:
    match = _SIZE_RE.match(value)
    if not match:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got '{value}'")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive, got '{value}'")
    return width, height


def cmd_displays(_args: argparse.Namespace) -> int:
    try:
        monitors = list_monitors()
    except DisplayError as exc:
        return _fail(str(exc))
    _print_json([asdict(m) for m in monitors])
    return 0


def cmd_change(args: argparse.Namespace) -> int:
    cfg = load_config()
    if args.out_dir:
        cfg.output.directory = args.out_dir
    orchestrator = WallpaperOrchestrator(cfg)
    try:
        results = orchestrator.apply(args.file, display_number=args.monitor, timeout_s=args.timeout)
    except (SourceError, DisplayError, PipelineError) as exc:
        return _fail(str(exc))

    ok = all(r.ok for r in results)
    _print_json({"success": ok, "displays": [asdict(r) for r in results]})
    return 0 if ok else 2


def cmd_compose(args: argparse.Namespace) -> int:
    cfg = load_config()
    width, height = args.size
    orchestrator = WallpaperOrchestrator(cfg)
    try:
        out = orchestrator.compose_file(args.file, width, height, args.out)
    except (SourceError, PipelineError) as exc:
        return _fail(str(exc))
    _print_json({"success": True, "output": str(out), "width": width, "height": height})
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    cfg = load_config()
    width, height = args.size
    perf = PerformanceController(
        PerformanceTargets(
            cpu_percent_max=cfg.performance.cpu_percent_max,
            rss_mb_max=cfg.performance.rss_mb_max,
            compose_seconds_max=cfg.performance.compose_seconds_max,
        )
    )
    try:
        source = load_image(resolve_source(args.file))
        target = DisplayTarget(width=width, height=height)
        samples = []
        for _ in range(max(1, args.runs)):
            start = time.perf_counter()
            compose_wallpaper(source, target, blur_divisor=cfg.compose.blur_divisor)
            samples.append(perf.sample(time.perf_counter() - start))
    except (SourceError, PipelineError) as exc:
        return _fail(str(exc))

    durations = [s.compose_seconds for s in samples]
    _print_json(
        {
            "runs": len(samples),
            "source": {"width": source.width, "height": source.height},
            "target": {"width": width, "height": height},
            "seconds": {
                "min": min(durations),
                "max": max(durations),
                "mean": sum(durations) / len(durations),
            },
            "budget": {
                "targets": asdict(perf.targets),
                "max_observed": {
                    "cpu_percent": max(s.cpu_percent for s in samples),
                    "rss_mb": max(s.rss_mb for s in samples),
                },
                "warnings": sorted({s.warning for s in samples if s.warning}),
                "pass": not any(s.warning for s in samples),
            },
        }
    )
    return 0


def cmd_config_show(_args: argparse.Namespace) -> int:
    _print_json(asdict(load_config()))
    return 0


def cmd_config_path(_args: argparse.Namespace) -> int:
    print(config_path())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="backdrop", description="Backdrop wallpaper manager")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug detail to the console")
    sub = parser.add_subparsers(dest="command", required=True)

    displays_cmd = sub.add_parser("displays", help="Show the pixel size of each monitor")
    displays_cmd.set_defaults(func=cmd_displays)

    change_cmd = sub.add_parser("change", help="Set the specified image as background")
    change_cmd.add_argument("file", help="Path to the image file")
    change_cmd.add_argument(
        "monitor", nargs="?", type=int, default=None, help="Optional monitor number (default: all monitors)"
    )
    change_cmd.add_argument("--out-dir", default=None, help="Directory for composed images (default: config or cwd)")
    change_cmd.add_argument("--timeout", type=float, default=None, help="Seconds to wait for all displays")
    change_cmd.set_defaults(func=cmd_change)

    compose_cmd = sub.add_parser("compose", help="Compose a wallpaper for one size without setting it")
    compose_cmd.add_argument("file", help="Path to the image file")
    compose_cmd.add_argument("--size", required=True, type=parse_size, help="Target size, e.g. 1920x1080")
    compose_cmd.add_argument("--out", required=True, help="Output image path")
    compose_cmd.set_defaults(func=cmd_compose)

    bench_cmd = sub.add_parser("benchmark", help="Time repeated composes against the performance budget")
    bench_cmd.add_argument("file", help="Path to the image file")
    bench_cmd.add_argument("--size", type=parse_size, default=(1920, 1080))
    bench_cmd.add_argument("--runs", type=int, default=5)
    bench_cmd.set_defaults(func=cmd_benchmark)

    config_cmd = sub.add_parser("config", help="Inspect settings")
    config_sub = config_cmd.add_subparsers(dest="config_cmd", required=True)
    show_cmd = config_sub.add_parser("show", help="Print effective settings")
    show_cmd.set_defaults(func=cmd_config_show)
    path_cmd = config_sub.add_parser("path", help="Print settings file location")
    path_cmd.set_defaults(func=cmd_config_path)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config()
    configure_logging(keep_files=cfg.diagnostics.keep_log_files, console=args.verbose, verbose=args.verbose)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
