from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def log() -> list[tuple[Any, ...]]:
    return []
