"""
Storage deposit policy.

NEP-145 contracts charge a refundable deposit per tracked account or
resource. Before a call that needs storage, the account's balance on the
contract is queried and a `storage_deposit` action is emitted only when the
balance falls short; the deposit is the shortfall rounded up to a whole
number of deposit units.

Registering several resources in one batch must go through a single
evaluation with `items=N`: evaluating them one at a time compares each
against a single unit and under-sizes the deposit.
"""

from dataclasses import dataclass
from typing import List, Literal, Optional

from .amounts import Amount, ONE_YOCTO, mul, round_up_to_nearest, sub, to_int
from .schemas import StorageBalance, parse_optional_view
from .session import Session
from .transactions import TGAS, function_call
from .types import Action
from .utils import get_logger

logger = get_logger(__name__)

STORAGE_DEPOSIT_GAS = 20 * TGAS
REGISTRATION_GAS = 30 * TGAS


@dataclass(frozen=True)
class StorageRequirement:
    """
    How much storage balance a call needs and how deposits are sized.

    Attributes:
        per_item: Minimum balance needed per resource
        items: Number of resources registered in this batch
        unit: Deposits are rounded up to multiples of this (defaults to per_item)
        gas: Gas attached to the storage_deposit call
        field: Balance field compared against the requirement; "total" only
            checks that the account is registered at all
    """

    per_item: Amount
    items: int = 1
    unit: Optional[Amount] = None
    gas: int = STORAGE_DEPOSIT_GAS
    field: Literal["available", "total"] = "available"

    @property
    def required(self) -> Amount:
        return mul(self.per_item, self.items)

    @property
    def deposit_unit(self) -> Amount:
        return self.unit if self.unit is not None else self.per_item


def registration(cost: Amount) -> StorageRequirement:
    """Requirement that is met as soon as the account is registered."""
    return StorageRequirement(
        per_item=ONE_YOCTO, unit=cost, gas=REGISTRATION_GAS, field="total"
    )


def required_deposit(
    balance: Optional[StorageBalance], requirement: StorageRequirement
) -> Optional[Amount]:
    """
    Compute the deposit needed to satisfy `requirement`.

    Args:
        balance: Parsed storage_balance_of result, None if not registered
        requirement: What the upcoming call needs

    Returns:
        Deposit in yoctoNEAR, or None when the balance already suffices
    """
    observed = "0"
    if balance is not None:
        observed = getattr(balance, requirement.field) or "0"

    if to_int(observed) >= to_int(requirement.required):
        return None

    shortfall = sub(requirement.required, observed)
    return round_up_to_nearest(shortfall, requirement.deposit_unit)


async def get_storage_balance(
    session: Session, contract: str
) -> Optional[StorageBalance]:
    """Query the session account's storage balance on `contract`."""
    data = await session.view_for_account(contract, "storage_balance_of")
    return parse_optional_view(
        StorageBalance, data, f"{contract}.storage_balance_of"
    )


async def storage_deposit_actions(
    session: Session, contract: str, requirement: StorageRequirement
) -> List[Action]:
    """
    Evaluate the policy for the session account on `contract`.

    Returns:
        An empty list, or a single storage_deposit action
    """
    balance = await get_storage_balance(session, contract)
    deposit = required_deposit(balance, requirement)

    if deposit is None:
        logger.debug(f"Storage on {contract} sufficient for {requirement.items} item(s)")
        return []

    logger.info(
        f"Storage deposit needed on {contract}: {deposit} yocto "
        f"(required {requirement.required}, items {requirement.items})"
    )
    return [function_call("storage_deposit", {}, requirement.gas, deposit)]
