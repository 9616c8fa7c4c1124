"""Check that the styling service accepts the configured key and models."""

from __future__ import annotations

import asyncio
import sys

from stylestudio.integrations import run_all_checks
from stylestudio.monitoring.logging import configure_logging


def main() -> int:
    configure_logging()
    results = asyncio.run(run_all_checks())
    for result in results:
        print(f"[{'OK' if result.success else 'FAIL'}] {result.name}: {result.message}")
    return 0 if all(result.success for result in results) else 1


if __name__ == "__main__":
    sys.exit(main())
