"""Ledger module for minting asset tokens.

``TokenMinter`` is the port the tokenization pipeline mints through. Two
adapters are provided:

- ``SimulatedLedger``: random contract address and transaction hash after a delay
- ``ledger.rpc.LedgerRPC``: JSON-RPC calls to a token factory node
"""
import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

SUPPORTED_CHAINS = ('ethereum', 'polygon')


class LedgerError(Exception):
    """Base exception for ledger errors."""
    pass


class UnsupportedChainError(LedgerError):
    """Raised when asked to mint on a chain the ledger does not know."""
    pass


class MintResult(BaseModel):
    contract_address: str
    transaction_hash: str


def token_symbol(name: str) -> str:
    """Ticker for an asset token: TOK plus the first three letters of the name."""
    return "TOK" + name[:3].upper()


class TokenMinter(ABC):
    """Port for deploying a token contract for an asset."""

    @abstractmethod
    async def mint(self, chain: str, name: str, symbol: str, supply: int) -> MintResult:
        """Create a token contract.

        Args:
            chain: Target chain, one of SUPPORTED_CHAINS
            name: Token name, usually the asset name
            symbol: Token ticker
            supply: Initial token supply

        Returns:
            Contract address and deployment transaction hash

        Raises:
            LedgerError: If the token could not be created
        """


class SimulatedLedger(TokenMinter):
    """Pretends to deploy a contract."""

    def __init__(self, delay: float = 1.0):
        self.delay = delay

    async def mint(self, chain: str, name: str, symbol: str, supply: int) -> MintResult:
        if chain not in SUPPORTED_CHAINS:
            raise UnsupportedChainError(f"Unsupported chain: {chain}")
        await asyncio.sleep(self.delay)
        result = MintResult(
            contract_address=f"0x{secrets.token_hex(20)}",
            transaction_hash=f"0x{secrets.token_hex(32)}"
        )
        logger.info(f"Created token {name} ({symbol}) on {chain}")
        return result


def create_minter(settings: Dict[str, Any], delay: Optional[float] = None) -> TokenMinter:
    """Build the minter selected by the ``ledger`` setting."""
    if settings.get('ledger') == 'rpc':
        from .rpc import LedgerRPC
        return LedgerRPC(settings['ledger_rpc_url'])
    return SimulatedLedger(settings.get('simulated_delay', 1.0) if delay is None else delay)


__all__ = [
    'LedgerError', 'UnsupportedChainError', 'MintResult', 'TokenMinter',
    'SimulatedLedger', 'SUPPORTED_CHAINS', 'create_minter', 'token_symbol'
]
