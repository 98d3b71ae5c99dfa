from __future__ import annotations

from mediamodules.core.modules.cli import run


def main() -> int:
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
