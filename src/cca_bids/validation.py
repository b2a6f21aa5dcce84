from __future__ import annotations

import re
from enum import Enum

from src.utils.math_tools import clamp_to_nearest_tick, is_aligned, q96_from_ratio, ratio_from_q96

from .core import AuctionParams, Bid
from .errors import BidValidationError

ZERO_ADDRESS = "0x" + "0" * 40
_ZERO_ADDRESS_RE = re.compile(r"^0[xX]0{40}$")


class BidStatus(str, Enum):
    """Where a bid sits relative to the clearing price."""

    ITM = "in-the-money"
    ATM = "at-the-money"
    OTM = "out-of-the-money"


def bid_status(max_price_q96: int, clearing_price_q96: int) -> BidStatus:
    if max_price_q96 > clearing_price_q96:
        return BidStatus.ITM
    if max_price_q96 == clearing_price_q96:
        return BidStatus.ATM
    return BidStatus.OTM


def max_price_q96(bid: Bid, auction: AuctionParams) -> int:
    return q96_from_ratio(bid.max_bid, auction.token_decimals, auction.currency_decimals)


def validate_bid(bid: Bid, auction: AuctionParams | None = None) -> None:
    """Local pre-flight checks for a resolved bid.

    Without an auction snapshot only the bid itself is checked. Raises
    BidValidationError on the first failed rule.
    """
    if bid.amount <= 0:
        raise BidValidationError("bid amount must be greater than zero")
    if bid.max_bid <= 0:
        raise BidValidationError("max bid must be greater than zero")
    if _ZERO_ADDRESS_RE.match(bid.owner):
        raise BidValidationError("bid owner cannot be zero address")

    if auction is None:
        return

    if auction.floor_price is not None and bid.max_bid <= auction.floor_price:
        raise BidValidationError(
            f"max bid {bid.max_bid} must be above the floor price {auction.floor_price}"
        )
    if auction.max_price is not None and bid.max_bid > auction.max_price:
        raise BidValidationError(
            f"max bid {bid.max_bid} exceeds the auction max price {auction.max_price}"
        )

    price_q96 = max_price_q96(bid, auction)
    td, cd = auction.token_decimals, auction.currency_decimals

    spacing = auction.tick_spacing
    if spacing is not None and not is_aligned(price_q96, spacing):
        floor_q96 = q96_from_ratio(auction.floor_price, td, cd) if auction.floor_price is not None else 0
        # first tick at or above the floor, so the suggestion is itself aligned
        anchor = -(-floor_q96 // spacing) * spacing
        cap_q96 = (
            q96_from_ratio(auction.max_price, td, cd)
            if auction.max_price is not None
            else price_q96 + spacing
        )
        nearest = clamp_to_nearest_tick(price_q96, spacing, anchor, cap_q96)
        raise BidValidationError(
            f"max bid {bid.max_bid} is not on a price tick; nearest valid price is "
            f"{ratio_from_q96(nearest, td, cd)}"
        )

    if auction.clearing_price is not None:
        clearing_q96 = q96_from_ratio(auction.clearing_price, td, cd)
        if bid_status(price_q96, clearing_q96) is not BidStatus.ITM:
            raise BidValidationError(
                f"max bid {bid.max_bid} must be above the current clearing price "
                f"{auction.clearing_price}"
            )
