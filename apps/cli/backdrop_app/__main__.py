from __future__ import annotations

import sys

from backdrop_app.cli import main as _cli_main


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        # Bare invocation lists displays, the read-only command.
        return int(_cli_main(["displays"]))
    return int(_cli_main(args))


if __name__ == "__main__":
    raise SystemExit(main())
