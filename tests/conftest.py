from __future__ import annotations

import pytest


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark everything under tests/integration as `integration`.

    Those tests need a live NATS server; `pytest -m 'not integration'` runs the
    in-memory suite only.
    """

    for item in items:
        if "tests/integration" in str(getattr(item, "fspath", "")):
            item.add_marker(pytest.mark.integration)
