import os
from decimal import Decimal

import pytest

from src.cca_bids.errors import ConfigNotFound, ConfigParseError
from src.utils.config_loader import Config, load_config

BIDS_TOML = """
[bid]
max_bid = 5.0
amount = 1
owner = "0xdef"
"""


def test_reads_bid_table_with_decimal_floats(write_config):
    cfg = Config(path=write_config(BIDS_TOML))
    assert cfg.get("bid.max_bid") == Decimal("5.0")
    assert isinstance(cfg.get("bid.max_bid"), Decimal)
    assert cfg.get("bid.amount") == 1
    assert cfg.get("bid.owner") == "0xdef"


def test_defaults_merged_under_file(write_config):
    cfg = Config(path=write_config(BIDS_TOML + '\n[logging]\nlevel = "DEBUG"\n'))
    assert cfg.get("logging.level") == "DEBUG"
    assert cfg.get("logging.file") == ""
    assert cfg.get("missing.key", "fallback") == "fallback"
    whole = cfg.get()
    assert isinstance(whole, dict)
    assert "bid" in whole and "logging" in whole


def test_default_path_is_bids_toml_in_cwd(write_config):
    write_config(BIDS_TOML)
    cfg = Config()
    assert cfg.path.name == "bids.toml"
    assert cfg.get("bid.owner") == "0xdef"


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigNotFound) as exc:
        Config(path=tmp_path / "nope.toml")
    assert "nope.toml" in str(exc.value)


def test_malformed_toml_raises(write_config):
    path = write_config("[bid\nmax_bid = ")
    with pytest.raises(ConfigParseError) as exc:
        Config(path=path)
    assert exc.value.path == path


def test_env_overlay_casts_to_existing_type(write_config, monkeypatch):
    monkeypatch.setenv("BIDS_BID__MAX_BID", "7.25")
    monkeypatch.setenv("BIDS_BID__AMOUNT", "4")
    monkeypatch.setenv("BIDS_BID__OWNER", "0xenv")
    # not present in the file, so ignored
    monkeypatch.setenv("BIDS_BID__UNKNOWN", "x")

    cfg = Config(path=write_config(BIDS_TOML))
    assert cfg.get("bid.max_bid") == Decimal("7.25")
    assert cfg.get("bid.amount") == 4
    assert cfg.get("bid.owner") == "0xenv"
    assert cfg.get("bid.unknown") is None


def test_env_overlay_respects_prefix(write_config, monkeypatch):
    monkeypatch.setenv("OTHER_BID__MAX_BID", "9")
    path = write_config(BIDS_TOML)
    assert Config(path=path).get("bid.max_bid") == Decimal("5.0")
    assert Config(path=path, env_prefix="OTHER_").get("bid.max_bid") == Decimal("9")


def test_reload_picks_up_changes(write_config):
    path = write_config(BIDS_TOML)
    cfg = Config(path=path)
    path.write_text(BIDS_TOML.replace("0xdef", "0x123"), encoding="utf-8")
    cfg.reload()
    assert cfg.get("bid.owner") == "0x123"


def test_load_config_reads_dotenv(write_config, tmp_path):
    (tmp_path / ".env").write_text("PRIVATE_KEY=0xfromdotenv\n", encoding="utf-8")
    load_config(write_config(BIDS_TOML))
    assert os.environ["PRIVATE_KEY"] == "0xfromdotenv"


def test_real_env_wins_over_dotenv(write_config, tmp_path, monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", "0xreal")
    (tmp_path / ".env").write_text("PRIVATE_KEY=0xfromdotenv\n", encoding="utf-8")
    load_config(write_config(BIDS_TOML))
    assert os.environ["PRIVATE_KEY"] == "0xreal"
