"""
Network configuration: contract addresses, endpoints and the fixed economic
constants the recipes attach to storage and liquidity calls.

Built-in tables exist for mainnet and testnet; a YAML file may override any
field. NEAR_ENV selects the default network.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .amounts import parse_near_amount
from .exceptions import ConfigurationError

DEFAULT_NETWORK_ENV = "NEAR_ENV"


class ContractAddresses(BaseModel):
    """Accounts of the contracts the recipes talk to."""

    model_config = ConfigDict(frozen=True)

    ref_exchange: str
    ref_farming: str
    wnear: str
    metapool: str


class EconomicConstants(BaseModel):
    """Fixed deposits, all in yoctoNEAR."""

    model_config = ConfigDict(frozen=True)

    farm_storage_balance: str = parse_near_amount("0.045")
    min_deposit_per_token: str = parse_near_amount("0.005")
    lp_storage_amount: str = parse_near_amount("0.01")
    new_account_storage_cost: str = parse_near_amount("0.00125")
    storage_amount_per_byte: str = str(10**19)

    @field_validator(
        "farm_storage_balance",
        "min_deposit_per_token",
        "lp_storage_amount",
        "new_account_storage_cost",
        "storage_amount_per_byte",
        mode="before",
    )
    @classmethod
    def validate_amount(cls, v):
        # YAML may hand over ints for large literals
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str) or not v.isdigit():
            raise ValueError(f"amount must be a non-negative integer string: {v!r}")
        return v


class NetworkConfig(BaseModel):
    """Validated configuration of one NEAR network."""

    model_config = ConfigDict(frozen=True)

    network_id: str
    node_url: str = Field(min_length=1)
    wallet_url: str = Field(min_length=1)
    explorer_url: Optional[str] = None
    contracts: ContractAddresses
    economics: EconomicConstants = Field(default_factory=EconomicConstants)


NETWORKS: Dict[str, Dict[str, Any]] = {
    "mainnet": {
        "network_id": "mainnet",
        "node_url": "https://rpc.mainnet.near.org",
        "wallet_url": "https://wallet.near.org",
        "explorer_url": "https://explorer.near.org",
        "contracts": {
            "ref_exchange": "v2.ref-finance.near",
            "ref_farming": "v2.ref-farming.near",
            "wnear": "wrap.near",
            "metapool": "meta-pool.near",
        },
    },
    "testnet": {
        "network_id": "testnet",
        "node_url": "https://rpc.testnet.near.org",
        "wallet_url": "https://wallet.testnet.near.org",
        "explorer_url": "https://explorer.testnet.near.org",
        "contracts": {
            "ref_exchange": "ref-finance-101.testnet",
            "ref_farming": "v2.ref-farming.testnet",
            "wnear": "wrap.testnet",
            "metapool": "meta-v2.pool.testnet",
        },
    },
}


def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    result = base.copy()
    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _build(config_dict: Dict[str, Any], source: str) -> NetworkConfig:
    try:
        return NetworkConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid network configuration in {source}: {e}",
            details={"source": source},
        ) from e


def get_config(network: Optional[str] = None) -> NetworkConfig:
    """
    Get the built-in configuration of a network.

    Args:
        network: "mainnet" or "testnet"; defaults to $NEAR_ENV, then mainnet

    Raises:
        ConfigurationError: If the network is unknown
    """
    network = network or os.getenv(DEFAULT_NETWORK_ENV, "mainnet")
    if network not in NETWORKS:
        raise ConfigurationError(
            f"Unknown network '{network}', expected one of {sorted(NETWORKS)}",
            details={"network": network},
        )
    return _build(NETWORKS[network], network)


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse a YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    return config_dict


def load_network_config(config_path: Union[str, Path]) -> NetworkConfig:
    """
    Load a network configuration from YAML.

    Fields missing from the file are taken from the built-in table of its
    `network_id` (if that network is known), so a file may override as little
    as one contract address.
    """
    config_dict = load_yaml_config(config_path)
    network_id = config_dict.get("network_id") or os.getenv(
        DEFAULT_NETWORK_ENV, "mainnet"
    )
    base = NETWORKS.get(network_id, {"network_id": network_id})
    merged = _deep_merge(base, config_dict)
    merged["network_id"] = network_id
    return _build(merged, str(config_path))
