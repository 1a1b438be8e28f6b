from __future__ import annotations

from collections.abc import Generator

import pytest
from support import RecordingAdapter, user_meta

from deltamap.adapters.storage import DbaStorage
from deltamap.repositories.repository import Repository


@pytest.fixture(autouse=True)
def clean_dba_storage() -> Generator[None, None, None]:
    DbaStorage.clear()
    yield
    DbaStorage.clear()


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def repo(adapter: RecordingAdapter) -> Repository:
    return Repository(adapter, meta=user_meta())
