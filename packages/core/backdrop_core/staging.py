"""Source validation and per-display output file naming."""

from __future__ import annotations

import logging
import time
from pathlib import Path

_LOGGER = logging.getLogger("backdrop.staging")

_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "BMP": "bmp", "WEBP": "webp"}
DEFAULT_TEMPLATE = "{display}_{timestamp}.{ext}"


class SourceError(RuntimeError):
    pass


def resolve_source(path: Path | str) -> Path:
    path = Path(path).expanduser()
    if not path.exists():
        raise SourceError(f"File '{path}' does not exist")
    if not path.is_file():
        raise SourceError(f"'{path}' is not a file")
    return path.resolve()


def extension_for(fmt: str) -> str:
    return _EXTENSIONS.get(fmt.upper(), fmt.lower())


def target_filename(display_number: int, timestamp: int, template: str = DEFAULT_TEMPLATE, fmt: str = "JPEG") -> str:
    return template.format(display=display_number, timestamp=timestamp, ext=extension_for(fmt))


def stage_output(
    source: Path,
    display_number: int,
    output_dir: Path,
    timestamp: int | None = None,
    template: str = DEFAULT_TEMPLATE,
    fmt: str = "JPEG",
) -> Path:
    """Return the absolute path the composed image for ``display_number`` is written to.

    Any stale file already at that path is removed. A source whose name equals
    the target filename is refused so the output never overwrites its input.
    """
    stamp = int(time.time()) if timestamp is None else int(timestamp)
    name = target_filename(display_number, stamp, template, fmt)
    if source.name == name:
        raise SourceError(
            f"Cannot use '{name}' as source - it's the target filename for monitor {display_number}"
        )

    output_dir = Path(output_dir).expanduser()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        target = (output_dir / name).resolve()
    except OSError as exc:
        raise SourceError(f"Monitor {display_number} - Cannot use output directory '{output_dir}': {exc}") from exc
    if target == Path(source).resolve():
        raise SourceError(f"Output path {target} would overwrite the source image")
    if target.exists():
        try:
            target.unlink()
        except OSError as exc:
            raise SourceError(f"Monitor {display_number} - Failed to remove existing '{name}': {exc}") from exc
        _LOGGER.info("Removed existing '%s'", name, extra={"event": "stale_output_removed", "display": display_number})
    return target
