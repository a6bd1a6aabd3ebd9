"""
Recipe: leave a Ref farm position.

Unstakes the farm shares, removes all liquidity from the pool with a 0.1%
slippage floor and optionally withdraws the tokens back to the wallet.
"""

import asyncio
from typing import List

from .. import amm
from ..amounts import add, is_zero, to_int
from ..types import FarmPosition, TokenDeposit, Transaction
from ..utils import get_logger
from .base import RecipeLogic
from .steps import RecipeStep

logger = get_logger(__name__)


class ExitFarmPosition(RecipeLogic):
    """
    Args:
        session: Account, chain access and network configuration
        pool_id: Pool whose LP shares are farmed
        handoff: Wallet hand-off
    """

    def __init__(self, session, pool_id: int, handoff=None):
        super().__init__(session, handoff)
        self.pool_id = pool_id

    async def get_position(self) -> FarmPosition:
        """Read the farm stake, the LP shares and the pool concurrently."""
        farm_shares, info = await asyncio.gather(
            self.get_farming_stake(self.pool_id), self.get_pool_info(self.pool_id)
        )
        total = add(info.user_shares, farm_shares)

        if is_zero(info.total_shares):
            min_amounts = ["0"] * len(info.pool_amounts)
        else:
            min_amounts = amm.min_lp_amounts_out(
                total, info.total_shares, info.pool_amounts
            )

        return FarmPosition(
            pool_id=self.pool_id,
            lp_shares=info.user_shares,
            farm_shares=farm_shares,
            total_shares=total,
            min_amounts=min_amounts,
            token_ids=list(info.pool.token_ids),
        )

    async def exit(
        self, position: FarmPosition, withdraw: bool, callback_url: str
    ) -> List[Transaction]:
        """
        Unstake, remove liquidity and optionally withdraw to the wallet.

        Args:
            position: Position read by `get_position`
            withdraw: Also withdraw the minimum token amounts from the exchange
            callback_url: Where the wallet returns the user

        Returns:
            The transactions handed to the wallet
        """
        if position.is_empty:
            logger.info(f"No position in pool {position.pool_id}, nothing to exit")
            return []

        withdrawals = [
            TokenDeposit(token=token, amount=amount)
            for token, amount in zip(position.token_ids, position.min_amounts)
        ]
        steps = [
            RecipeStep(
                "unstake farm shares",
                lambda: self.farm_unstake(position.farm_shares, position.pool_id),
                enabled=to_int(position.farm_shares) > 0,
            ),
            RecipeStep(
                "remove liquidity",
                lambda: self.remove_liquidity(
                    position.pool_id, position.total_shares, position.min_amounts
                ),
            ),
            RecipeStep(
                "withdraw tokens",
                lambda: self.withdraw_tokens_from_ref(withdrawals),
                enabled=withdraw and bool(withdrawals),
            ),
        ]
        logger.info(
            f"Exiting pool {position.pool_id}: {position.farm_shares} farm + "
            f"{position.lp_shares} LP shares, min amounts {position.min_amounts}"
        )
        return await self.run_steps(steps, callback_url)
