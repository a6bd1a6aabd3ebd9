"""
AMM math for simple (constant-pool) exchange pools.

Share and slippage estimates are computed locally in exact integers; swap
quotes are delegated to the pool contract itself. LP estimates are bounds for
the UI, the final share count is decided on chain.
"""

import asyncio
from typing import List, Sequence

from .amounts import (
    NEAR_NOMINATION_EXP,
    Amount,
    AmountLike,
    min_amount,
    mul_div,
    to_int,
)
from .schemas import PoolView, parse_amount, parse_view
from .session import Session
from .types import Pool, PoolInfo
from .utils import get_logger

logger = get_logger(__name__)

# 0.1% slippage tolerance on token amounts
SLIPPAGE_NUMERATOR = 999
SLIPPAGE_DENOMINATOR = 1000

# 0.3% tolerance on LP shares; also keeps at least one share as residual
LP_SHARE_NUMERATOR = 997
LP_SHARE_DENOMINATOR = 1000


def minimum_output(exact_amount: AmountLike) -> Amount:
    """Minimum accepted output for `exact_amount`: floor(x * 999 / 1000)."""
    return mul_div(exact_amount, SLIPPAGE_NUMERATOR, SLIPPAGE_DENOMINATOR)


def min_amounts_out(amounts: Sequence[AmountLike]) -> List[Amount]:
    """Apply the slippage tolerance to each amount independently."""
    return [minimum_output(amount) for amount in amounts]


def lp_shares_from_amounts(
    pool_total_shares: AmountLike,
    pool_amounts: Sequence[AmountLike],
    supplied_amounts: Sequence[AmountLike],
) -> Amount:
    """
    Estimate the LP shares minted for supplying `supplied_amounts`.

    Each token yields a candidate floor(total_shares * supplied / reserve);
    the smallest candidate wins so unbalanced supplies are never over-credited.
    A 0.3% haircut is applied on top.

    Args:
        pool_total_shares: Shares in circulation
        pool_amounts: Pool reserves, in pool token order
        supplied_amounts: Amounts supplied, aligned with pool_amounts

    Returns:
        Estimated shares

    Raises:
        ValueError: On misaligned inputs or an empty reserve
    """
    if len(pool_amounts) != len(supplied_amounts) or not pool_amounts:
        raise ValueError(
            f"Supplied amounts ({len(supplied_amounts)}) must align with "
            f"pool reserves ({len(pool_amounts)})"
        )

    candidates = []
    for index, (reserve, supplied) in enumerate(zip(pool_amounts, supplied_amounts)):
        if to_int(reserve) == 0:
            raise ValueError(f"Pool reserve of token {index} is empty")
        candidates.append(mul_div(pool_total_shares, supplied, reserve))

    return mul_div(min_amount(candidates), LP_SHARE_NUMERATOR, LP_SHARE_DENOMINATOR)


def min_lp_amounts_out(
    user_shares: AmountLike,
    total_shares: AmountLike,
    pool_amounts: Sequence[AmountLike],
) -> List[Amount]:
    """
    Minimum token amounts accepted when withdrawing `user_shares`.

    Per token floor(reserve * user_shares / total_shares), minus 0.1%.
    """
    return [
        minimum_output(mul_div(amount, user_shares, total_shares))
        for amount in pool_amounts
    ]


def estimate_stnear_out(
    amount: AmountLike, price: AmountLike, accuracy: int = 5
) -> Amount:
    """
    stNEAR (in yocto) received for staking `amount` yoctoNEAR at `price`
    yoctoNEAR per stNEAR, truncated to `accuracy` decimal places of stNEAR.
    """
    if to_int(price) == 0:
        return "0"
    scaled = to_int(amount) * 10**accuracy // to_int(price)
    return str(scaled * 10 ** (NEAR_NOMINATION_EXP - accuracy))


async def get_pool(session: Session, pool_id: int) -> Pool:
    """Fetch and validate one exchange pool."""
    contract = session.contracts.ref_exchange
    data = await session.view(contract, "get_pool", {"pool_id": pool_id})
    return parse_view(PoolView, data, f"{contract}.get_pool").to_pool(pool_id)


async def get_user_shares(session: Session, pool_id: int) -> Amount:
    contract = session.contracts.ref_exchange
    data = await session.view(
        contract,
        "get_pool_shares",
        {"pool_id": pool_id, "account_id": session.account_id},
    )
    return parse_amount(data, f"{contract}.get_pool_shares")


async def get_pool_info(session: Session, pool_id: int) -> PoolInfo:
    """
    Fetch a pool and the session account's shares in it, concurrently.

    Values can move between this read and the signed submission; callers
    re-quote right before building the final transaction set.
    """
    pool, user_shares = await asyncio.gather(
        get_pool(session, pool_id), get_user_shares(session, pool_id)
    )
    return PoolInfo(pool=pool, user_shares=user_shares)


async def pool_output_for_input(
    session: Session, pool_id: int, token_in: str, amount_in: AmountLike, token_out: str
) -> Amount:
    """
    Amount of `token_out` the pool returns for `amount_in` of `token_in`.

    The pool contract's own quote is returned unmodified.
    """
    contract = session.contracts.ref_exchange
    data = await session.view(
        contract,
        "get_return",
        {
            "pool_id": pool_id,
            "token_in": token_in,
            "amount_in": str(amount_in),
            "token_out": token_out,
        },
    )
    amount_out = parse_amount(data, f"{contract}.get_return")
    logger.debug(f"Pool {pool_id} quote: {amount_in} {token_in} -> {amount_out} {token_out}")
    return amount_out
