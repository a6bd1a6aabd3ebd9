"""
Composable recipe operations.

Every operation reads what it needs for the session account, decides on
storage pre-flight deposits and returns an ordered list of unsigned
transactions, one per receiver. Nothing is signed or submitted here; the list
is handed to the wallet by the concrete recipes.
"""

import asyncio
from typing import Awaitable, Dict, Iterable, List, Optional, Sequence

from .. import amm
from ..amounts import ONE_YOCTO, Amount, AmountLike
from ..exceptions import ConfigurationError
from ..schemas import MetapoolState, parse_amount, parse_amount_map, parse_view
from ..session import Session
from ..storage import StorageRequirement, registration, storage_deposit_actions
from ..transactions import TGAS, TransactionBuilder, function_call
from ..types import (
    LiquidityPosition,
    MetapoolInfo,
    PoolInfo,
    SwapAction,
    TokenDeposit,
    Transaction,
)
from ..utils import compact_json, get_logger
from ..wallet import WalletHandoff
from .steps import RecipeStep, pending_steps

logger = get_logger(__name__)

MFT_TRANSFER_CALL_GAS = 180 * TGAS
WITHDRAW_SEED_GAS = 200 * TGAS
ADD_LIQUIDITY_GAS = 100 * TGAS
REMOVE_LIQUIDITY_GAS = 100 * TGAS
INSTANT_SWAP_GAS = 180 * TGAS
DEPOSIT_AND_STAKE_GAS = 50 * TGAS
NEAR_DEPOSIT_GAS = 50 * TGAS
FT_DEPOSIT_GAS = 150 * TGAS
WITHDRAW_GAS = 100 * TGAS


class RecipeLogic:
    """
    Building blocks shared by all recipes.

    Args:
        session: Account, chain access and network configuration
        handoff: Wallet hand-off used by `pass_to_wallet`
    """

    def __init__(self, session: Session, handoff: Optional[WalletHandoff] = None):
        self.session = session
        self.handoff = handoff
        self.builder = TransactionBuilder(session)

    @property
    def contracts(self):
        return self.session.contracts

    @property
    def economics(self):
        return self.session.economics

    def seed_id(self, pool_id: int) -> str:
        """Farm seed of a pool's LP shares."""
        return f"{self.contracts.ref_exchange}@{pool_id}"

    # Reads

    async def get_farming_stake(self, pool_id: int) -> Amount:
        """LP shares of `pool_id` the account has staked on the farm."""
        contract = self.contracts.ref_farming
        data = await self.session.view_for_account(contract, "list_user_seeds")
        seeds = parse_amount_map(data, f"{contract}.list_user_seeds")
        return seeds.get(self.seed_id(pool_id), "0")

    async def get_pool_info(self, pool_id: int) -> PoolInfo:
        return await amm.get_pool_info(self.session, pool_id)

    async def get_pool_return(
        self, pool_id: int, token_in: str, amount_in: AmountLike, token_out: str
    ) -> Amount:
        return await amm.pool_output_for_input(
            self.session, pool_id, token_in, amount_in, token_out
        )

    async def get_native_balance(self) -> Amount:
        return await self.session.provider.native_balance(self.session.account_id)

    async def get_metapool_info(self) -> MetapoolInfo:
        """stNEAR price and minimum deposit on Meta Pool."""
        contract = self.contracts.metapool
        data = await self.session.view(contract, "get_contract_state", {})
        state = parse_view(MetapoolState, data, f"{contract}.get_contract_state")
        return state.to_info()

    async def get_token_balances(self, tokens: Sequence[str]) -> List[Amount]:
        """Wallet balances of several fungible tokens, queried concurrently."""
        results = await asyncio.gather(
            *(
                self.session.view_for_account(token, "ft_balance_of")
                for token in tokens
            )
        )
        return [
            parse_amount(data, f"{token}.ft_balance_of")
            for token, data in zip(tokens, results)
        ]

    async def get_token_balances_on_ref(self, tokens: Sequence[str]) -> List[Amount]:
        """Balances deposited on the exchange; unknown tokens count as zero."""
        contract = self.contracts.ref_exchange
        data = await self.session.view_for_account(contract, "get_deposits")
        deposits = parse_amount_map(data, f"{contract}.get_deposits")
        return [deposits.get(token, "0") for token in tokens]

    # Farm

    async def farm_stake(self, amount: AmountLike, pool_id: int) -> List[Transaction]:
        """Stake LP shares of `pool_id` on the farm."""
        farming = self.contracts.ref_farming
        storage_actions = await storage_deposit_actions(
            self.session,
            farming,
            StorageRequirement(per_item=self.economics.farm_storage_balance),
        )
        stake = function_call(
            "mft_transfer_call",
            {
                "receiver_id": farming,
                "token_id": f":{pool_id}",
                "amount": str(amount),
                "msg": "",
            },
            MFT_TRANSFER_CALL_GAS,
            ONE_YOCTO,
        )
        return await self.builder.build_many(
            [(farming, storage_actions), (self.contracts.ref_exchange, [stake])]
        )

    async def farm_unstake(self, amount: AmountLike, pool_id: int) -> List[Transaction]:
        """Withdraw staked LP shares of `pool_id` from the farm."""
        farming = self.contracts.ref_farming
        actions = await storage_deposit_actions(
            self.session,
            farming,
            StorageRequirement(
                per_item=ONE_YOCTO, unit=self.economics.farm_storage_balance
            ),
        )
        actions.append(
            function_call(
                "withdraw_seed",
                {"seed_id": self.seed_id(pool_id), "amount": str(amount), "msg": ""},
                WITHDRAW_SEED_GAS,
                ONE_YOCTO,
            )
        )
        return [await self.builder.build(farming, actions)]

    # Exchange

    async def add_liquidity(
        self, positions: Sequence[LiquidityPosition]
    ) -> List[Transaction]:
        """
        Add liquidity to one or more pools in a single exchange transaction.

        Each position gets a 0.1% slippage floor per token. The exchange takes
        the LP storage from the attached deposit, so no pre-flight check runs.
        """
        actions = [
            function_call(
                "add_liquidity",
                {
                    "pool_id": position.pool_id,
                    "amounts": [str(amount) for amount in position.amounts],
                    "min_amounts": amm.min_amounts_out(position.amounts),
                },
                ADD_LIQUIDITY_GAS,
                self.economics.lp_storage_amount,
            )
            for position in positions
        ]
        return [await self.builder.build(self.contracts.ref_exchange, actions)]

    async def remove_liquidity(
        self, pool_id: int, shares: AmountLike, min_amounts: Sequence[AmountLike]
    ) -> List[Transaction]:
        action = function_call(
            "remove_liquidity",
            {
                "pool_id": pool_id,
                "shares": str(shares),
                "min_amounts": [str(amount) for amount in min_amounts],
            },
            REMOVE_LIQUIDITY_GAS,
            ONE_YOCTO,
        )
        return [await self.builder.build(self.contracts.ref_exchange, [action])]

    async def instant_swap(self, swap_action: SwapAction) -> List[Transaction]:
        """
        Swap through the exchange in one ft_transfer_call on the input token.

        The output token gets a registration transaction first when the
        account has no storage on it yet.
        """
        storage_actions = await storage_deposit_actions(
            self.session,
            swap_action.token_out,
            registration(self.economics.new_account_storage_cost),
        )
        swap = function_call(
            "ft_transfer_call",
            {
                "receiver_id": self.contracts.ref_exchange,
                "amount": swap_action.amount_in,
                "msg": compact_json({"force": 0, "actions": [swap_action.to_dict()]}),
            },
            INSTANT_SWAP_GAS,
            ONE_YOCTO,
        )
        return await self.builder.build_many(
            [(swap_action.token_out, storage_actions), (swap_action.token_in, [swap])]
        )

    async def deposit_tokens_on_ref(
        self, deposits: Sequence[TokenDeposit]
    ) -> List[Transaction]:
        """
        Deposit several tokens on the exchange.

        The exchange's storage is evaluated once for all tokens: depositing
        tokens through separate calls under-sizes the storage deposit.
        The tokens must already be whitelisted and registered on the exchange.
        """
        exchange = self.contracts.ref_exchange
        storage_actions = await storage_deposit_actions(
            self.session,
            exchange,
            StorageRequirement(
                per_item=self.economics.min_deposit_per_token, items=len(deposits)
            ),
        )
        logger.info(f"Depositing {len(deposits)} token(s) on {exchange}")
        batches = [(exchange, storage_actions)]
        for deposit in deposits:
            transfer = function_call(
                "ft_transfer_call",
                {"receiver_id": exchange, "amount": str(deposit.amount), "msg": ""},
                FT_DEPOSIT_GAS,
                ONE_YOCTO,
            )
            batches.append((deposit.token, [transfer]))
        return await self.builder.build_many(batches)

    async def withdraw_tokens_from_ref(
        self, withdrawals: Sequence[TokenDeposit]
    ) -> List[Transaction]:
        """
        Withdraw tokens from the exchange back to the wallet.

        Tokens the account is not registered on are registered first; all
        withdrawals go out in one exchange transaction.
        """
        registrations = await asyncio.gather(
            *(
                storage_deposit_actions(
                    self.session,
                    withdrawal.token,
                    registration(self.economics.new_account_storage_cost),
                )
                for withdrawal in withdrawals
            )
        )
        batches = [
            (withdrawal.token, actions)
            for withdrawal, actions in zip(withdrawals, registrations)
        ]
        batches.append(
            (
                self.contracts.ref_exchange,
                [
                    function_call(
                        "withdraw",
                        {
                            "token_id": withdrawal.token,
                            "amount": str(withdrawal.amount),
                            "unregister": False,
                        },
                        WITHDRAW_GAS,
                        ONE_YOCTO,
                    )
                    for withdrawal in withdrawals
                    if int(withdrawal.amount) > 0
                ],
            )
        )
        return await self.builder.build_many(batches)

    # NEAR

    async def near_to_stnear(self, amount: AmountLike) -> List[Transaction]:
        """Stake NEAR on Meta Pool for stNEAR."""
        stake = function_call(
            "deposit_and_stake", {}, DEPOSIT_AND_STAKE_GAS, str(amount)
        )
        return [await self.builder.build(self.contracts.metapool, [stake])]

    async def near_to_wnear(self, amount: AmountLike) -> List[Transaction]:
        """Wrap NEAR into wNEAR, registering on the wNEAR contract if needed."""
        wnear = self.contracts.wnear
        actions = await storage_deposit_actions(
            self.session, wnear, registration(self.economics.new_account_storage_cost)
        )
        actions.append(function_call("near_deposit", {}, NEAR_DEPOSIT_GAS, str(amount)))
        return [await self.builder.build(wnear, actions)]

    # Wallet

    def _require_handoff(self):
        if self.handoff is None:
            raise ConfigurationError(
                "No wallet hand-off configured for this recipe",
                details={"account_id": self.session.account_id},
            )

    async def pass_to_wallet(
        self,
        pending: Iterable[Awaitable[List[Transaction]]],
        callback_url: str,
    ) -> List[Transaction]:
        """Hand every pending operation's transactions to the wallet at once."""
        self._require_handoff()
        return await self.handoff.pass_to_wallet(pending, callback_url)

    async def run_steps(
        self, steps: Sequence[RecipeStep], callback_url: str
    ) -> List[Transaction]:
        """Start the enabled steps and hand all their transactions to the wallet."""
        self._require_handoff()
        return await self.pass_to_wallet(pending_steps(steps), callback_url)

    def describe(self, transactions: Sequence[Transaction]) -> List[Dict[str, object]]:
        """Plain summary of transactions for logs and the command line."""
        return [
            {
                "receiver_id": tx.receiver_id,
                "nonce": tx.nonce,
                "actions": [
                    {"method": a.method, "gas": a.gas, "deposit": a.deposit}
                    for a in tx.actions
                ],
            }
            for tx in transactions
        ]
