from __future__ import annotations

from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent

SLOW_FILES = (
    TESTS_DIR / "test_bench_workload.py",
)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    for item in items:
        path = Path(str(item.fspath)).resolve()
        if path in SLOW_FILES:
            item.add_marker(pytest.mark.slow)
