"""
Genesis bootstrap for a MockChain.

System script blobs are supplied by the caller (no binaries ship with this
package). genesis_event deploys them; genesis_block_from_chain wraps the
deployed cells in a block 0 and links them to it.
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from trampoline_transaction.transaction import TransactionBuilder
from trampoline_types.cell import OutPoint
from trampoline_types.errors import UnresolvedReference
from trampoline_types.hashing import calc_data_hash
from .block import Block

logger = logging.getLogger(__name__)


class GenesisScripts:
    """
    Ordered mapping of system script names to code blobs.

    Attributes:
        scripts (Dict[str, bytes]): Name to blob, in deployment order
    """

    def __init__(self, scripts: Optional[Dict[str, bytes]] = None):
        self.scripts: Dict[str, bytes] = {}
        for name, blob in (scripts or {}).items():
            self.add(name, blob)

    def add(self, name: str, blob: bytes) -> "GenesisScripts":
        if not blob:
            raise ValueError(f"Genesis script {name} has no code")
        if name in self.scripts:
            raise ValueError(f"Genesis script {name} already exists")
        self.scripts[name] = bytes(blob)
        return self

    def items(self) -> Iterator[Tuple[str, bytes]]:
        return iter(self.scripts.items())

    def __len__(self) -> int:
        return len(self.scripts)


class GenesisInfo:
    """Where each genesis script lives: name to (data hash, out point)."""

    def __init__(self, entries: Optional[Dict[str, Tuple[bytes, OutPoint]]] = None):
        self.entries: Dict[str, Tuple[bytes, OutPoint]] = dict(entries or {})

    def data_hash(self, name: str) -> Optional[bytes]:
        entry = self.entries.get(name)
        return entry[0] if entry else None

    def out_point(self, name: str) -> Optional[OutPoint]:
        entry = self.entries.get(name)
        return entry[1] if entry else None

    def names(self) -> List[str]:
        return list(self.entries)


def genesis_event(chain, scripts: GenesisScripts) -> Dict[str, OutPoint]:
    """
    Deploy every genesis script.

    Deployment is by data hash, so running this twice deploys nothing new.

    Args:
        chain: MockChain to deploy to
        scripts: Blobs to deploy

    Returns:
        Name to OutPoint of each deployed code cell
    """
    deployed: Dict[str, OutPoint] = {}
    for name, blob in scripts.items():
        deployed[name] = chain.deploy_cell_with_data(blob)
        logger.debug("Genesis script %s deployed at %r", name, deployed[name])
    return deployed


def genesis_block_from_chain(chain, scripts: GenesisScripts) -> Block:
    """
    Assemble block 0 from deployed genesis scripts.

    The block has one transaction whose outputs are the script cells, in
    order, followed by an empty default-lock cell. Every one of those cells
    is linked to the block at transaction index 0, and the chain's
    genesis_info is set.

    Args:
        chain: MockChain the scripts were deployed to
        scripts: The scripts passed to genesis_event

    Returns:
        The genesis Block

    Raises:
        UnresolvedReference: If a script has not been deployed
    """
    builder = TransactionBuilder()
    out_points: List[OutPoint] = []
    entries: Dict[str, Tuple[bytes, OutPoint]] = {}

    for name, blob in scripts.items():
        data_hash = calc_data_hash(blob)
        out_point = chain.get_cell_by_data_hash(data_hash)
        if out_point is None:
            raise UnresolvedReference(data_hash, f"Genesis script {name} is not deployed")
        output, data = chain.get_cell(out_point)
        builder.output_with_data(output, data)
        out_points.append(out_point)
        entries[name] = (data_hash, out_point)

    filler = chain.deploy_random_cell_with_default_lock(chain.config.genesis_filler_capacity)
    output, data = chain.get_cell(filler)
    builder.output_with_data(output, data)
    out_points.append(filler)

    block = Block.build([builder.build()], number=0)
    chain.insert_header(block.header)
    for out_point in out_points:
        chain.link_cell_with_block(out_point, block.hash(), 0)

    chain.genesis_info = GenesisInfo(entries)
    logger.info("Genesis block 0x%s with %d cells", block.hash().hex(), len(out_points))
    return block
