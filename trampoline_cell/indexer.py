"""
Implementation of the CellIndexer class for Trampoline.

This class maintains the secondary indices of the cell store: data hash to
the first cell that deployed that content, and lock/type script hash to the
cells carrying that script, in discovery order.
"""

from typing import Dict, List, Optional

from trampoline_types.cell import CellOutput, OutPoint
from trampoline_types.hashing import calc_data_hash


class CellIndexer:
    """
    Secondary indices over stored cells.

    Attributes:
        _by_data_hash (Dict[bytes, OutPoint]): First cell deployed per data hash
        _by_lock_hash (Dict[bytes, List[OutPoint]]): Cells per lock script hash
        _by_type_hash (Dict[bytes, List[OutPoint]]): Cells per type script hash
    """

    def __init__(self):
        """Initialize empty indices."""
        self._by_data_hash: Dict[bytes, OutPoint] = {}
        self._by_lock_hash: Dict[bytes, List[OutPoint]] = {}
        self._by_type_hash: Dict[bytes, List[OutPoint]] = {}

    def insert(self, out_point: OutPoint, output: CellOutput, data: bytes) -> None:
        """
        Index a newly stored cell.

        Args:
            out_point: Reference of the stored cell
            output: Output descriptor of the cell
            data: Cell data

        Raises:
            ValueError: If indexing fails; partial index updates are rolled back
        """
        data_hash = calc_data_hash(data)
        lock_hash = None
        type_hash = None
        added_data_entry = False
        try:
            # First deploy wins
            if data_hash not in self._by_data_hash:
                self._by_data_hash[data_hash] = out_point
                added_data_entry = True

            lock_hash = output.calc_lock_hash()
            self._by_lock_hash.setdefault(lock_hash, []).append(out_point)

            type_hash = output.calc_type_hash()
            if type_hash is not None:
                self._by_type_hash.setdefault(type_hash, []).append(out_point)

        except Exception as e:
            # Rollback on error
            if added_data_entry:
                self._by_data_hash.pop(data_hash, None)
            self._remove_from(self._by_lock_hash, lock_hash, out_point)
            self._remove_from(self._by_type_hash, type_hash, out_point)
            raise ValueError(f"Error indexing cell: {str(e)}")

    @staticmethod
    def _remove_from(index: Dict[bytes, List[OutPoint]], key: Optional[bytes], out_point: OutPoint) -> None:
        if key is None or key not in index:
            return
        entries = index[key]
        if entries and entries[-1] == out_point:
            entries.pop()
        if not entries:
            del index[key]

    def get_by_data_hash(self, data_hash: bytes) -> Optional[OutPoint]:
        """
        Find the cell that first deployed the given content.

        Args:
            data_hash: Content hash of the cell data

        Returns:
            OutPoint if known, None otherwise
        """
        return self._by_data_hash.get(bytes(data_hash))

    def get_by_lock_hash(self, lock_hash: bytes) -> List[OutPoint]:
        # Copies, so callers never mutate the index
        return list(self._by_lock_hash.get(bytes(lock_hash), []))

    def get_by_type_hash(self, type_hash: bytes) -> List[OutPoint]:
        return list(self._by_type_hash.get(bytes(type_hash), []))

    def clear(self) -> None:
        """Clear all index entries."""
        self._by_data_hash.clear()
        self._by_lock_hash.clear()
        self._by_type_hash.clear()
