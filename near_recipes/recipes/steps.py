"""
Declarative optional sub-steps of a recipe.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Sequence

from ..types import Transaction

logger = logging.getLogger(__name__)

StepFactory = Callable[[], Awaitable[List[Transaction]]]


@dataclass(frozen=True)
class RecipeStep:
    """
    One transaction-producing part of a recipe.

    Attributes:
        name: Label used in logs
        factory: Zero-argument callable returning the step's transactions
        enabled: Disabled steps are skipped and their factory never called
    """

    name: str
    factory: StepFactory
    enabled: bool = True


def pending_steps(steps: Sequence[RecipeStep]) -> List[Awaitable[List[Transaction]]]:
    """Start every enabled step, in declaration order."""
    pending = []
    for step in steps:
        if not step.enabled:
            logger.debug(f"Skipping disabled step: {step.name}")
            continue
        pending.append(step.factory())
    return pending
