"""
Command line entry point: build a recipe's transactions and print the wallet
sign URL.

    near-recipes --account alice.near wrap-and-stake 10
    near-recipes --account alice.near provide-liquidity 4.9 5 --farm-active
    near-recipes --account alice.near exit-position --withdraw
    near-recipes --account alice.near pool-info
"""

import argparse
import asyncio
import logging
import os
import sys
import webbrowser
from typing import List, Optional

from dotenv import load_dotenv

from .amounts import format_near_amount, parse_near_amount
from .config import NetworkConfig, get_config, load_network_config
from .exceptions import RecipeError
from .recipes import STNEAR_WNEAR_POOL_ID, EnterStnearWnearFarm, ExitFarmPosition
from .rpc import NearRpcClient
from .session import Session
from .utils import setup_logging
from .version import __version__
from .wallet import WalletHandoff, WalletRedirectSigner

logger = logging.getLogger(__name__)

DEFAULT_CALLBACK_URL = "http://localhost:8000/"


def near_amount(text: str) -> str:
    """argparse type: NEAR amount to yoctoNEAR."""
    try:
        return parse_near_amount(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="near-recipes",
        description="Build multi-step NEAR DeFi transactions and hand them to the wallet",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--network",
        choices=["mainnet", "testnet"],
        help="Network to use (default: $NEAR_ENV or mainnet)",
    )
    parser.add_argument("--config", help="YAML file overriding the network config")
    parser.add_argument(
        "--account",
        default=os.getenv("NEAR_ACCOUNT_ID"),
        help="Signing account (default: $NEAR_ACCOUNT_ID)",
    )
    parser.add_argument(
        "--public-key",
        action="append",
        dest="public_keys",
        help="Only sign with this key (can be used multiple times)",
    )
    parser.add_argument(
        "--callback-url",
        default=os.getenv("NEAR_CALLBACK_URL", DEFAULT_CALLBACK_URL),
        help="Where the wallet returns after signing",
    )
    parser.add_argument(
        "--open", action="store_true", help="Open the sign URL in a browser"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    wrap = subparsers.add_parser(
        "wrap-and-stake", help="Wrap half of ALLOWANCE and stake the other half"
    )
    wrap.add_argument("allowance", type=near_amount, help="NEAR to spend")

    provide = subparsers.add_parser(
        "provide-liquidity", help="Deposit stNEAR and wNEAR on Ref and add liquidity"
    )
    provide.add_argument("stnear", type=near_amount, help="stNEAR to supply")
    provide.add_argument("wnear", type=near_amount, help="wNEAR to supply")
    provide.add_argument(
        "--farm-active", action="store_true", help="Stake the LP shares on the farm"
    )

    exit_parser = subparsers.add_parser(
        "exit-position", help="Unstake and remove liquidity from a farmed pool"
    )
    exit_parser.add_argument("--pool-id", type=int, default=STNEAR_WNEAR_POOL_ID)
    exit_parser.add_argument(
        "--withdraw",
        action="store_true",
        help="Also withdraw the tokens from Ref to the wallet",
    )

    info = subparsers.add_parser("pool-info", help="Show a pool and your position")
    info.add_argument("--pool-id", type=int, default=STNEAR_WNEAR_POOL_ID)

    return parser


def resolve_config(args: argparse.Namespace) -> NetworkConfig:
    if args.config:
        config = load_network_config(args.config)
        if args.network and args.network != config.network_id:
            logger.warning(
                f"--network {args.network} ignored, {args.config} is for "
                f"{config.network_id}"
            )
        return config
    return get_config(args.network)


async def show_pool_info(recipe: ExitFarmPosition) -> None:
    farm_shares, info, metapool = await asyncio.gather(
        recipe.get_farming_stake(recipe.pool_id),
        recipe.get_pool_info(recipe.pool_id),
        recipe.get_metapool_info(),
    )
    print(f"Pool {recipe.pool_id} (fee {info.fee} bps)")
    for token, amount in zip(info.pool.token_ids, info.pool_amounts):
        print(f"  {token}: {format_near_amount(amount)}")
    print(f"  total shares: {format_near_amount(info.total_shares)}")
    print(f"Your LP shares: {format_near_amount(info.user_shares)}")
    print(f"Your farm shares: {format_near_amount(farm_shares)}")
    print(f"stNEAR price: {format_near_amount(metapool.st_near_price)} NEAR")


async def run(args: argparse.Namespace) -> int:
    config = resolve_config(args)
    signer = WalletRedirectSigner(
        config.wallet_url, redirect=webbrowser.open if args.open else _no_redirect
    )
    handoff = WalletHandoff(signer)

    async with NearRpcClient(
        config.node_url,
        known_public_keys=args.public_keys,
        storage_amount_per_byte=int(config.economics.storage_amount_per_byte),
    ) as client:
        session = Session(account_id=args.account, provider=client, config=config)

        if args.command == "wrap-and-stake":
            transactions = await EnterStnearWnearFarm(session, handoff).step_one(
                args.allowance, args.callback_url
            )
        elif args.command == "provide-liquidity":
            transactions = await EnterStnearWnearFarm(session, handoff).step_two(
                args.stnear, args.wnear, args.farm_active, args.callback_url
            )
        elif args.command == "exit-position":
            recipe = ExitFarmPosition(session, args.pool_id, handoff)
            position = await recipe.get_position()
            transactions = await recipe.exit(
                position, args.withdraw, args.callback_url
            )
        else:
            await show_pool_info(ExitFarmPosition(session, args.pool_id, handoff))
            return 0

    if not transactions:
        print("Nothing to do.")
        return 0

    for tx in transactions:
        print(f"{tx.receiver_id}: {', '.join(tx.methods)} (nonce {tx.nonce})")
    print(signer.last_url)
    return 0


def _no_redirect(url: str) -> None:
    pass


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if not args.account:
        logger.error("No account given (use --account or set NEAR_ACCOUNT_ID)")
        return 2

    try:
        return asyncio.run(run(args))
    except RecipeError as e:
        logger.error(f"{type(e).__name__}: {e}")
        if e.details:
            logger.debug(f"Details: {e.details}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
