import os

import pytest

_LIVE_ENGINES = ("postgres", "postgresql", "pg", "mysql", "mariadb")


def pytest_collection_modifyitems(items):
    """Mark collected tests in this directory as integration tests."""
    for item in items:
        if "tests/integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def live_adapter():
    """Engine adapter for the SCHEMA_DB_* database; skips unless it is PostgreSQL or MySQL."""
    from dal.factory import create_engine_adapter_from_env

    engine = (os.getenv("SCHEMA_DB_ENGINE") or "").strip().lower()
    if engine not in _LIVE_ENGINES:
        pytest.skip("SCHEMA_DB_ENGINE must point at a live PostgreSQL or MySQL database")
    return create_engine_adapter_from_env()
