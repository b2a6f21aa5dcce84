from __future__ import annotations

import argparse
import sys
from decimal import Decimal
from typing import Optional, Sequence

from src.cca_bids import __version__
from src.cca_bids.app import run_bids, run_main
from src.cca_bids.core import BidOverrides, parse_decimal
from src.cca_bids.errors import BidsError, InvalidFlagValue
from src.utils.config_loader import DEFAULT_CONFIG_PATH, DEFAULT_ENV_PREFIX
from src.utils.logger import get_logger


def _decimal_arg(field: str):
    def parse(text: str) -> Decimal:
        try:
            return parse_decimal(text, field)
        except InvalidFlagValue as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    parse.__name__ = field
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cca-bids", description="CCA bidding CLI")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        metavar="FILE",
        help="Path to the bids configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--env-prefix",
        type=str,
        default=DEFAULT_ENV_PREFIX,
        help="Environment variable prefix for config overrides (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: [logging] level from the config, then LOG_LEVEL)",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    bids = sub.add_parser("bids", help="Preview a bid from config (local only)")
    bids.add_argument(
        "--max_bid",
        "--max-bid",
        dest="max_bid",
        type=_decimal_arg("max_bid"),
        metavar="AMOUNT",
        help="Maximum bid price (human units, from config by default)",
    )
    bids.add_argument(
        "--amount",
        type=_decimal_arg("amount"),
        metavar="AMOUNT",
        help="Bid amount (human units, from config by default)",
    )
    bids.add_argument("--owner", type=str, metavar="KEY", help="Bid owner/private key")
    bids.add_argument(
        "--check",
        action="store_true",
        help="Validate the bid against the [auction] table before printing",
    )
    bids.add_argument("--json", action="store_true", help="Print the bid as JSON")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "bids":
            overrides = BidOverrides(max_bid=args.max_bid, amount=args.amount, owner=args.owner)
            run_bids(
                overrides,
                config_path=args.config,
                env_prefix=args.env_prefix,
                log_level=args.log_level,
                check=args.check,
                as_json=args.json,
            )
        else:
            run_main(config_path=args.config, env_prefix=args.env_prefix, log_level=args.log_level)
    except BidsError as exc:
        get_logger("cca_bids").debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code

    return 0


if __name__ == "__main__":
    sys.exit(main())
