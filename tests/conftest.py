"""Global test configuration and fixtures."""

from typing import Any, Dict, List

import pytest
from loguru import logger

from conversion_sdk.test_utils.delta_log import DeltaLogBuilder


@pytest.fixture
def table_path(tmp_path):
    """Root directory of a Delta table."""
    path = tmp_path / "events"
    path.mkdir()
    return path


@pytest.fixture
def delta_log(table_path) -> DeltaLogBuilder:
    """Empty transaction log under ``table_path``."""
    return DeltaLogBuilder(table_path)


@pytest.fixture
def log_records():
    """Capture loguru records emitted while the test runs."""
    records: List[Dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
