"""Ledger collaborator for recording ownership transfers

The transaction service only depends on ``BlockchainLedger``. The default
``SimulatedLedger`` fabricates receipts locally. ``create_app`` picks the
implementation named by LEDGER_NETWORK from ``LEDGER_NETWORKS``, or takes
one passed in directly.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Type
from fastapi import Request
import random
import logging

logger = logging.getLogger(__name__)

MAX_SIMULATED_BLOCK = 1_000_000


@dataclass
class LedgerReceipt:
    """Result of writing an ownership transfer to the ledger"""
    tx_hash: str
    block_number: int
    contract_address: str
    token_id: str
    status: str = "confirmed"


class BlockchainLedger(ABC):
    """Abstract ledger that records property token transfers"""

    network: str = "unknown"

    @abstractmethod
    async def record_transfer(
        self,
        property_id: int,
        previous_owner_id: int,
        new_owner_id: int,
    ) -> LedgerReceipt:
        """
        Transfer the property token from the previous owner to the new owner.

        Args:
            property_id: Property being transferred; doubles as the token id
            previous_owner_id: Seller's user id
            new_owner_id: Buyer's user id

        Returns:
            LedgerReceipt describing the confirmed transfer
        """
        pass


class SimulatedLedger(BlockchainLedger):
    """Stand-in ledger producing random hashes and block numbers"""

    network = "simulated"

    def __init__(self, rng: random.Random = None):
        # SystemRandom by default; tests pass a seeded random.Random
        self.rng = rng or random.SystemRandom()

    def _hex(self, length: int) -> str:
        return "0x" + "".join(self.rng.choice("0123456789abcdef") for _ in range(length))

    async def record_transfer(
        self,
        property_id: int,
        previous_owner_id: int,
        new_owner_id: int,
    ) -> LedgerReceipt:
        receipt = LedgerReceipt(
            tx_hash=self._hex(64),
            block_number=self.rng.randrange(MAX_SIMULATED_BLOCK),
            contract_address=self._hex(40),
            token_id=str(property_id),
        )
        logger.info(
            f"Simulated transfer of property {property_id} from user {previous_owner_id} "
            f"to user {new_owner_id}: {receipt.tx_hash} in block {receipt.block_number}"
        )
        return receipt


def get_ledger(request: Request) -> BlockchainLedger:
    """FastAPI dependency returning the application's ledger"""
    return request.app.state.ledger


LEDGER_NETWORKS: Dict[str, Type[BlockchainLedger]] = {
    SimulatedLedger.network: SimulatedLedger,
}


def build_ledger(network: str) -> BlockchainLedger:
    """Create the ledger selected by the LEDGER_NETWORK setting"""
    try:
        ledger_class = LEDGER_NETWORKS[network]
    except KeyError:
        raise ValueError(
            f"Unsupported ledger network '{network}'; expected one of {sorted(LEDGER_NETWORKS)}"
        ) from None
    return ledger_class()
