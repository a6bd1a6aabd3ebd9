"""
Recipe: enter the stNEAR <> wNEAR farm on Ref Finance.

Step one turns NEAR into equal halves of wNEAR and stNEAR. Step two deposits
both on the exchange, provides liquidity to the stNEAR <> wNEAR pool and,
while the farm is running, stakes the LP shares.
"""

from typing import List

from .. import amm
from ..amounts import Amount, AmountLike, div
from ..exceptions import ValidationError
from ..types import LiquidityPosition, Pool, TokenDeposit, Transaction
from ..utils import get_logger
from .base import RecipeLogic
from .steps import RecipeStep

logger = get_logger(__name__)

# [meta-pool.near, wrap.near] on mainnet
STNEAR_WNEAR_POOL_ID = 535


class EnterStnearWnearFarm(RecipeLogic):
    pool_id = STNEAR_WNEAR_POOL_ID

    def pool_amounts_for(
        self, pool: Pool, stnear_amount: AmountLike, wnear_amount: AmountLike
    ) -> List[Amount]:
        """Order the supplied amounts like the pool's tokens."""
        by_token = {
            self.contracts.metapool: str(stnear_amount),
            self.contracts.wnear: str(wnear_amount),
        }
        if not pool.token_ids:
            return [by_token[self.contracts.metapool], by_token[self.contracts.wnear]]
        if sorted(pool.token_ids) != sorted(by_token):
            raise ValidationError(
                f"Pool {pool.id} does not hold stNEAR and wNEAR: {pool.token_ids}",
                details={"pool_id": pool.id, "token_ids": pool.token_ids},
            )
        return [by_token[token] for token in pool.token_ids]

    async def step_one(
        self, allowance: AmountLike, callback_url: str
    ) -> List[Transaction]:
        """
        Wrap one half of `allowance` and stake the other half on Meta Pool.

        Args:
            allowance: NEAR to spend, in yoctoNEAR
            callback_url: Where the wallet returns the user

        Returns:
            The transactions handed to the wallet
        """
        half = div(allowance, 2)
        logger.info(f"Step one: wrapping {half} and staking {half} yoctoNEAR")
        steps = [
            RecipeStep("wrap NEAR", lambda: self.near_to_wnear(half)),
            RecipeStep("stake NEAR on Meta Pool", lambda: self.near_to_stnear(half)),
        ]
        return await self.run_steps(steps, callback_url)

    async def step_two(
        self,
        stnear_amount: AmountLike,
        wnear_amount: AmountLike,
        farm_active: bool,
        callback_url: str,
    ) -> List[Transaction]:
        """
        Deposit both tokens on Ref, add liquidity and optionally farm.

        The staked share count is an estimate from the current pool ratio; if
        the ratio moves before execution the farm stake may need a retry.

        Args:
            stnear_amount: stNEAR to supply, in yocto
            wnear_amount: wNEAR to supply, in yocto
            farm_active: Stake the resulting LP shares on the farm
            callback_url: Where the wallet returns the user

        Returns:
            The transactions handed to the wallet
        """
        pool = await amm.get_pool(self.session, self.pool_id)
        amounts = self.pool_amounts_for(pool, stnear_amount, wnear_amount)
        lp_shares = amm.lp_shares_from_amounts(
            pool.total_shares, pool.token_amounts, amounts
        )
        logger.info(
            f"Step two: supplying {amounts} to pool {self.pool_id}, "
            f"estimated {lp_shares} LP shares"
        )

        deposits = [
            TokenDeposit(token=self.contracts.metapool, amount=str(stnear_amount)),
            TokenDeposit(token=self.contracts.wnear, amount=str(wnear_amount)),
        ]
        steps = [
            RecipeStep("deposit on Ref", lambda: self.deposit_tokens_on_ref(deposits)),
            RecipeStep(
                "add liquidity",
                lambda: self.add_liquidity(
                    [LiquidityPosition(pool_id=self.pool_id, amounts=amounts)]
                ),
            ),
            RecipeStep(
                "stake LP shares on farm",
                lambda: self.farm_stake(lp_shares, self.pool_id),
                enabled=farm_active,
            ),
        ]
        return await self.run_steps(steps, callback_url)

    async def farming_stake(self) -> Amount:
        """LP shares of the stNEAR <> wNEAR pool staked on the farm."""
        return await self.get_farming_stake(self.pool_id)
