from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigParseError, InvalidFlagValue, MissingBidField

PRIVATE_KEY_ENV = "PRIVATE_KEY"
BID_FIELDS = ("max_bid", "amount", "owner")
MAX_DECIMALS = 255


@dataclass(frozen=True)
class BidConfig:
    """The ``[bid]`` table. Every field may be left to the command line."""

    max_bid: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    owner: Optional[str] = None


@dataclass(frozen=True)
class AuctionParams:
    """Local snapshot of the auction used for price display and pre-flight checks."""

    token_decimals: int = 18
    currency_decimals: int = 18
    floor_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    tick_spacing: Optional[int] = None
    clearing_price: Optional[Decimal] = None


@dataclass(frozen=True)
class LoggingParams:
    level: Optional[str] = None
    file: Optional[str] = None


@dataclass(frozen=True)
class BidsConfig:
    bid: BidConfig = field(default_factory=BidConfig)
    auction: Optional[AuctionParams] = None
    logging: LoggingParams = field(default_factory=LoggingParams)
    path: Optional[Path] = None


@dataclass(frozen=True)
class BidOverrides:
    max_bid: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    owner: Optional[str] = None


@dataclass(frozen=True)
class Bid:
    max_bid: Decimal
    amount: Decimal
    owner: str

    def as_dict(self) -> Dict[str, str]:
        return {"max_bid": str(self.max_bid), "amount": str(self.amount), "owner": self.owner}


# ---- Parsing ---------------------------------------------------------------


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidOperation(value)
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float, str)):
        d = Decimal(str(value).strip())
    else:
        raise InvalidOperation(value)
    if not d.is_finite():
        raise InvalidOperation(value)
    return d


def parse_decimal(text: str, field: str = "value") -> Decimal:
    """Parse a command-line value as a finite Decimal."""
    try:
        return _to_decimal(text)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidFlagValue(field, text) from exc


def _decimal_field(table: Mapping[str, Any], key: str, section: str, path: Optional[Path]) -> Optional[Decimal]:
    value = table.get(key)
    if value is None:
        return None
    try:
        return _to_decimal(value)
    except (InvalidOperation, ValueError) as exc:
        raise ConfigParseError(path, f"{section}.{key} must be a decimal number, got {value!r}") from exc


def _int_field(table: Mapping[str, Any], key: str, section: str, path: Optional[Path], default: Optional[int]) -> Optional[int]:
    value = table.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigParseError(path, f"{section}.{key} must be an integer, got {value!r}")
    if value < 0:
        raise ConfigParseError(path, f"{section}.{key} must be non-negative, got {value}")
    return value


def _bid_from_table(table: Mapping[str, Any], path: Optional[Path]) -> BidConfig:
    owner = table.get("owner")
    if owner is not None and not isinstance(owner, str):
        raise ConfigParseError(path, f"bid.owner must be a string, got {owner!r}")
    return BidConfig(
        max_bid=_decimal_field(table, "max_bid", "bid", path),
        amount=_decimal_field(table, "amount", "bid", path),
        owner=owner or None,
    )


def _price_field(table: Mapping[str, Any], key: str, path: Optional[Path]) -> Optional[Decimal]:
    value = _decimal_field(table, key, "auction", path)
    if value is not None and value < 0:
        raise ConfigParseError(path, f"auction.{key} must be non-negative, got {value}")
    return value


def _decimals_field(table: Mapping[str, Any], key: str, path: Optional[Path]) -> int:
    value = _int_field(table, key, "auction", path, 18)
    # ERC-20 decimals are a uint8
    if value > MAX_DECIMALS:  # type: ignore[operator]
        raise ConfigParseError(path, f"auction.{key} must be at most {MAX_DECIMALS}, got {value}")
    return value  # type: ignore[return-value]


def _auction_from_table(table: Any, path: Optional[Path]) -> AuctionParams:
    if not isinstance(table, dict):
        raise ConfigParseError(path, "[auction] must be a table")
    tick_spacing = _int_field(table, "tick_spacing", "auction", path, None)
    if tick_spacing == 0:
        raise ConfigParseError(path, "auction.tick_spacing must be positive")
    return AuctionParams(
        token_decimals=_decimals_field(table, "token_decimals", path),
        currency_decimals=_decimals_field(table, "currency_decimals", path),
        floor_price=_price_field(table, "floor_price", path),
        max_price=_price_field(table, "max_price", path),
        tick_spacing=tick_spacing,
        clearing_price=_price_field(table, "clearing_price", path),
    )


def build_from_config(cfg: Mapping[str, Any], path: Optional[Path] = None) -> BidsConfig:
    """Build a typed BidsConfig from the raw config mapping.

    Bid fields come from the ``[bid]`` table; flat files with the three keys at
    the top level are accepted too.
    """
    if "bid" in cfg:
        bid_table = cfg["bid"]
        if not isinstance(bid_table, dict):
            raise ConfigParseError(path, "[bid] must be a table")
    else:
        bid_table = {k: cfg[k] for k in BID_FIELDS if k in cfg}

    auction = _auction_from_table(cfg["auction"], path) if "auction" in cfg else None

    log_cfg = cfg.get("logging") or {}
    logging_params = LoggingParams(
        level=str(log_cfg["level"]) if log_cfg.get("level") else None,
        file=str(log_cfg["file"]) if log_cfg.get("file") else None,
    )

    return BidsConfig(
        bid=_bid_from_table(bid_table, path),
        auction=auction,
        logging=logging_params,
        path=path,
    )


# ---- Resolution ------------------------------------------------------------


def owner_from_env() -> Optional[str]:
    value = os.environ.get(PRIVATE_KEY_ENV, "").strip()
    return value or None


def resolve_bid(config: BidsConfig, overrides: BidOverrides) -> Bid:
    """Overlay command-line overrides onto the configured bid.

    Overrides always win; the owner additionally falls back to PRIVATE_KEY.
    """
    max_bid = overrides.max_bid if overrides.max_bid is not None else config.bid.max_bid
    if max_bid is None:
        raise MissingBidField("max_bid")

    amount = overrides.amount if overrides.amount is not None else config.bid.amount
    if amount is None:
        raise MissingBidField("amount")

    owner = overrides.owner if overrides.owner is not None else config.bid.owner
    if owner is None:
        owner = owner_from_env()
    if owner is None:
        raise MissingBidField("owner", f"pass --owner or set {PRIVATE_KEY_ENV}")

    return Bid(max_bid=max_bid, amount=amount, owner=owner)
