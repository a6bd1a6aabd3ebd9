"""
Explicit session context passed to every recipe operation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from .config import NetworkConfig
from .interfaces import ViewProvider
from .nonces import NonceSequencer


@dataclass
class Session:
    """
    The active account together with the collaborators operations need.

    Attributes:
        account_id: Account that will sign every transaction
        provider: Read-only chain access
        config: Network configuration (contract addresses, constants)
        sequencer: Nonce reservations shared by all builds of this session
    """

    account_id: str
    provider: ViewProvider
    config: NetworkConfig
    sequencer: NonceSequencer = field(default_factory=NonceSequencer)

    @property
    def contracts(self):
        return self.config.contracts

    @property
    def economics(self):
        return self.config.economics

    async def view(self, contract: str, method: str, args: Dict[str, Any]) -> Any:
        return await self.provider.view(contract, method, args)

    async def view_for_account(self, contract: str, method: str) -> Any:
        """View call whose only argument is the session's account id."""
        return await self.provider.view(
            contract, method, {"account_id": self.account_id}
        )
