"""Host chain progress counter."""

import logging

log = logging.getLogger(__name__)


class Chain:
    """Block height and chain id of the host ledger.

    Timelocks are measured in blocks, so the engines only ever read
    ``block_number``. Tests and simulations advance it with ``mine``.
    """

    def __init__(self, chain_id: int = 1, block_number: int = 0):
        if chain_id <= 0:
            raise ValueError(f"Invalid chain_id: {chain_id}")
        self.chain_id = chain_id
        self._block_number = block_number

    @property
    def block_number(self) -> int:
        return self._block_number

    def mine(self, blocks: int = 1) -> int:
        """Advance the chain by ``blocks`` and return the new height."""
        if blocks < 0:
            raise ValueError(f"Cannot mine a negative number of blocks: {blocks}")
        self._block_number += blocks
        log.debug("Mined %d block(s) on chain %d, height=%d",
                  blocks, self.chain_id, self._block_number)
        return self._block_number
