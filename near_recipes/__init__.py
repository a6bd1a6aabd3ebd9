"""
NEAR DeFi Recipes.

Builds the unsigned transaction batches of multi-step DeFi operations on NEAR
(wrap, stake on Meta Pool, deposit and provide liquidity on Ref Finance, farm)
and hands them to the NEAR wallet for signing.
"""

from near_recipes.version import __version__

PROJECT_NAME = "near-recipes"
VERSION = __version__

# Export main components for easier imports
from near_recipes.config import NetworkConfig, get_config, load_network_config
from near_recipes.exceptions import (
    ConfigurationError,
    NetworkError,
    NoMatchingKeyError,
    RecipeError,
    ValidationError,
    ViewCallError,
)
from near_recipes.nonces import NonceSequencer
from near_recipes.recipes import (
    EnterStnearWnearFarm,
    ExitFarmPosition,
    RecipeLogic,
    RecipeStep,
)
from near_recipes.session import Session
from near_recipes.transactions import TransactionBuilder
from near_recipes.types import Action, SwapAction, TokenDeposit, Transaction
from near_recipes.wallet import WalletHandoff, WalletRedirectSigner

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "NetworkConfig",
    "get_config",
    "load_network_config",
    "RecipeError",
    "ConfigurationError",
    "ValidationError",
    "NoMatchingKeyError",
    "NetworkError",
    "ViewCallError",
    "NonceSequencer",
    "Session",
    "TransactionBuilder",
    "Action",
    "SwapAction",
    "TokenDeposit",
    "Transaction",
    "RecipeLogic",
    "RecipeStep",
    "EnterStnearWnearFarm",
    "ExitFarmPosition",
    "WalletHandoff",
    "WalletRedirectSigner",
]
