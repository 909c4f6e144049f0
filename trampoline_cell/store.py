"""
Implementation of the CellStore class for Trampoline.

This class provides in-memory storage for cells keyed by OutPoint, with
secondary indices by data hash, lock hash and type hash, and an optional
location record per cell.
"""

import logging
from typing import Any, Dict, List, Optional

from trampoline_types.cell import (
    CellOutput,
    CellOutputWithData,
    OutPoint,
    TransactionInfo,
    capacity_bytes,
)
from trampoline_types.hashing import calc_data_hash, random_hash
from .indexer import CellIndexer

logger = logging.getLogger(__name__)


def random_out_point() -> OutPoint:
    """Fresh reference that is not derived from any content."""
    return OutPoint(random_hash(), 0)


class CellStore:
    """
    In-memory cell storage with secondary indices.

    Cells are never mutated in place: amending a cell means creating a new
    one at a new reference.

    Attributes:
        _cells (Dict[OutPoint, CellOutputWithData]): Primary store
        _indexer (CellIndexer): Data/lock/type hash indices
        _headers (Dict[bytes, Any]): Known block headers by hash
        _locations (Dict[OutPoint, TransactionInfo]): Location records
    """

    def __init__(self):
        """Initialize empty cell storage."""
        self._cells: Dict[OutPoint, CellOutputWithData] = {}
        self._indexer = CellIndexer()
        self._headers: Dict[bytes, Any] = {}
        self._locations: Dict[OutPoint, TransactionInfo] = {}

    def deploy_with_data(self, data: bytes) -> OutPoint:
        """
        Deploy raw data (typically script code) in a default cell.

        The default cell has capacity for exactly the data length, the
        default lock and no type script.

        Args:
            data: Bytes to deploy

        Returns:
            OutPoint of the new cell, or of the existing cell holding the
            same content
        """
        output = CellOutput(capacity=capacity_bytes(len(data)))
        return self.deploy_output(data, output)

    def deploy_output(self, data: bytes, output: CellOutput) -> OutPoint:
        """
        Deploy data with an explicit output template.

        Idempotent by content hash: if a cell with the same data already
        exists its reference is returned and the template is ignored.

        Args:
            data: Cell data
            output: Output descriptor (capacity, lock, type)

        Returns:
            OutPoint of the deploying cell
        """
        data = bytes(data)
        existing = self._indexer.get_by_data_hash(calc_data_hash(data))
        if existing is not None:
            return existing

        out_point = random_out_point()
        self.create_cell_with_out_point(out_point, output, data)
        logger.debug("Deployed %d bytes at %r", len(data), out_point)
        return out_point

    def create_cell(self, output: CellOutput, data: bytes) -> OutPoint:
        """
        Store a cell at a fresh reference, regardless of its content.

        Returns:
            OutPoint of the new cell
        """
        out_point = random_out_point()
        self.create_cell_with_out_point(out_point, output, data)
        return out_point

    def create_cell_with_out_point(self, out_point: OutPoint, output: CellOutput, data: bytes) -> None:
        """
        Insert a cell at a given reference and update indices.

        Args:
            out_point: Reference to bind
            output: Output descriptor
            data: Cell data

        Raises:
            ValueError: If the reference is bound to a different cell, or if
                indexing fails (the primary insert is rolled back)
        """
        data = bytes(data)
        existing = self._cells.get(out_point)
        if existing is not None:
            if existing == (output, data):
                return
            raise ValueError(f"Cell {out_point!r} already exists")

        try:
            # Add to main storage
            self._cells[out_point] = (output, data)

            # Update secondary indices
            self._indexer.insert(out_point, output, data)

        except Exception as e:
            # Rollback on error
            self._cells.pop(out_point, None)
            raise ValueError(f"Error adding cell: {str(e)}")

    def get(self, out_point: OutPoint) -> Optional[CellOutputWithData]:
        """
        Retrieve a cell by reference.

        Args:
            out_point: Reference of the cell

        Returns:
            (CellOutput, data) if found, None otherwise
        """
        return self._cells.get(out_point)

    def get_by_data_hash(self, data_hash: bytes) -> Optional[OutPoint]:
        return self._indexer.get_by_data_hash(data_hash)

    def get_by_lock_hash(self, lock_hash: bytes) -> List[OutPoint]:
        """
        Get references of all cells locked by the given script hash.

        Returns:
            List of OutPoints in discovery order (empty if none)
        """
        return self._indexer.get_by_lock_hash(lock_hash)

    def get_by_type_hash(self, type_hash: bytes) -> List[OutPoint]:
        """
        Get references of all cells typed by the given script hash.

        Returns:
            List of OutPoints in discovery order (empty if none)
        """
        return self._indexer.get_by_type_hash(type_hash)

    def get_cell_data(self, out_point: OutPoint) -> Optional[bytes]:
        cell = self._cells.get(out_point)
        return cell[1] if cell is not None else None

    def get_cell_data_hash(self, out_point: OutPoint) -> Optional[bytes]:
        data = self.get_cell_data(out_point)
        return calc_data_hash(data) if data is not None else None

    def insert_header(self, header: Any) -> None:
        """Register a block header so cells can be linked to its block."""
        self._headers[header.hash()] = header

    def get_header(self, block_hash: bytes) -> Optional[Any]:
        return self._headers.get(bytes(block_hash))

    def link(self, out_point: OutPoint, block_hash: bytes, tx_index: int) -> None:
        """
        Record that a cell was committed in a known block.

        Args:
            out_point: Reference of the cell
            block_hash: Hash of a header previously passed to insert_header
            tx_index: Index of the creating transaction in that block

        Raises:
            ValueError: If the header is unknown
        """
        header = self._headers.get(bytes(block_hash))
        if header is None:
            raise ValueError(f"Unknown block header 0x{bytes(block_hash).hex()}")
        self._locations[out_point] = TransactionInfo(
            block_number=header.number,
            block_epoch=header.epoch,
            block_hash=bytes(block_hash),
            index=tx_index,
        )

    def get_transaction_info(self, out_point: OutPoint) -> Optional[TransactionInfo]:
        return self._locations.get(out_point)

    def all_out_points(self) -> List[OutPoint]:
        """
        Get all stored references.

        Returns:
            List of OutPoints in insertion order
        """
        return list(self._cells.keys())

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, out_point: object) -> bool:
        return out_point in self._cells

    def clear(self) -> None:
        """Clear all cells, indices, headers and location records."""
        self._cells.clear()
        self._indexer.clear()
        self._headers.clear()
        self._locations.clear()
