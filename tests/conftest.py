from __future__ import annotations

import pytest

from csvload.configs.config import PipelineConfig
from tests.fixtures.oracle_mocks import FakeDatabase, FakePool


@pytest.fixture
def config(tmp_path) -> PipelineConfig:
    return PipelineConfig(error_dir=tmp_path / "error", batch_size=1000)


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def pool(db) -> FakePool:
    return FakePool(db)
