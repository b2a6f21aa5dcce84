import logging
import os

import pytest

from src.utils.logger import owned_handlers


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test from an empty directory with no bid-related env vars."""
    for key in list(os.environ):
        if key.startswith("BIDS_") or key in ("PRIVATE_KEY", "LOG_LEVEL"):
            monkeypatch.delenv(key)
    # Recorded so values loaded from a test's .env are removed afterwards.
    for key in ("PRIVATE_KEY", "LOG_LEVEL"):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    yield tmp_path

    logger = logging.getLogger("cca_bids")
    for h in owned_handlers(logger):
        logger.removeHandler(h)
        h.close()
    for attr in ("_console_handler", "_file_handler"):
        if hasattr(logger, attr):
            delattr(logger, attr)


@pytest.fixture
def write_config(tmp_path):
    def write(text: str, name: str = "bids.toml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return write
