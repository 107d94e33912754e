from __future__ import annotations

import pytest

from subweave.config import Settings


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=str(tmp_path / "data"),
        log_dir=str(tmp_path / "logs"),
    )
