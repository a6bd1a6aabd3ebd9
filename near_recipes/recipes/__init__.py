"""
Recipes: composable operations and the multi-step flows built from them.
"""

from .base import RecipeLogic
from .enter_stnear_wnear_farm import STNEAR_WNEAR_POOL_ID, EnterStnearWnearFarm
from .exit_farm_position import ExitFarmPosition
from .steps import RecipeStep, pending_steps

__all__ = [
    "RecipeLogic",
    "EnterStnearWnearFarm",
    "ExitFarmPosition",
    "RecipeStep",
    "pending_steps",
    "STNEAR_WNEAR_POOL_ID",
]
