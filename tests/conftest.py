import pytest

from krill import logger


@pytest.fixture(autouse=True)
def log_to_tmp(tmp_path, monkeypatch):
    monkeypatch.setattr(logger, "LOG_FILE_PATH", str(tmp_path / "krill.log"))
