from __future__ import annotations

import shutil
from pathlib import Path

import pytest

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(scope="session")
def sqlite3_program() -> str:
    """Path of a real ``sqlite3`` binary; skips the test when there is none."""
    program = shutil.which("sqlite3")
    if program is None:
        pytest.skip("sqlite3 binary is not available")
    return program
