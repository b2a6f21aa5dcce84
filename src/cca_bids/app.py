from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, TextIO

from src.cca_bids.core import Bid, BidOverrides, BidsConfig, build_from_config, resolve_bid
from src.cca_bids.validation import max_price_q96, validate_bid
from src.utils.config_loader import DEFAULT_CONFIG_PATH, DEFAULT_ENV_PREFIX, load_config
from src.utils.logger import get_logger
from src.utils.math_tools import to_base_units


def load_bids_config(
    config_path: str | Path = DEFAULT_CONFIG_PATH,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    log_level: Optional[str] = None,
) -> tuple[BidsConfig, logging.Logger]:
    """Load the TOML file, type it, and configure logging from it."""
    path = Path(config_path)
    cfg = load_config(path, env_prefix=env_prefix)
    bids_cfg = build_from_config(cfg.get(), path=path)

    logger = get_logger(
        name="cca_bids",
        level=log_level or bids_cfg.logging.level,
        log_file=bids_cfg.logging.file,
    )
    logger.info("Loaded config from %s", path)
    logger.debug("Config contents: %s", cfg.get())
    return bids_cfg, logger


def _chain_values(bid: Bid, config: BidsConfig) -> Optional[dict]:
    """Q96 price and base-unit amount, when an auction snapshot makes them meaningful."""
    auction = config.auction
    # q96 prices are only defined for positive prices; --check reports the rest
    if auction is None or bid.max_bid <= 0:
        return None
    return {
        "max_price_q96": max_price_q96(bid, auction),
        "amount_base_units": to_base_units(bid.amount, auction.currency_decimals),
    }


def format_bid(bid: Bid, config: BidsConfig, as_json: bool = False) -> str:
    chain = _chain_values(bid, config)
    if as_json:
        payload: dict = bid.as_dict()
        if chain is not None:
            payload.update({k: str(v) for k, v in chain.items()})
        return json.dumps(payload, indent=2)

    lines = [
        f"Bid ready (local): max_bid={bid.max_bid}, amount={bid.amount}, owner={bid.owner}"
    ]
    if chain is not None:
        lines.append(
            f"  max_price_q96={chain['max_price_q96']}, "
            f"amount_base_units={chain['amount_base_units']}"
        )
    return "\n".join(lines)


def run_main(
    config_path: str | Path = DEFAULT_CONFIG_PATH,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    log_level: Optional[str] = None,
    out: Optional[TextIO] = None,
) -> BidsConfig:
    """Invocation without a subcommand: load the config and report where from."""
    bids_cfg, _ = load_bids_config(config_path, env_prefix, log_level)
    print(f"Loaded config from {config_path}", file=out)
    return bids_cfg


def run_bids(
    overrides: BidOverrides,
    config_path: str | Path = DEFAULT_CONFIG_PATH,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    log_level: Optional[str] = None,
    check: bool = False,
    as_json: bool = False,
    out: Optional[TextIO] = None,
) -> Bid:
    """Resolve the bid from config + overrides, optionally check it, and print it."""
    bids_cfg, logger = load_bids_config(config_path, env_prefix, log_level)

    given = [name for name, value in vars(overrides).items() if value is not None]
    if given:
        logger.debug("Command-line overrides: %s", ", ".join(given))

    bid = resolve_bid(bids_cfg, overrides)

    if check:
        validate_bid(bid, bids_cfg.auction)
        logger.info("Bid passed local checks")

    print(format_bid(bid, bids_cfg, as_json=as_json), file=out)
    return bid
