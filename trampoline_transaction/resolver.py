"""
Implementation of the TransactionResolver class for Trampoline.

This class turns reference-only transactions into ResolvedTransactions by
materializing every input and cell dep from a cell store, and derives the
code dependencies a transaction needs for its scripts to be verifiable.
"""

import logging
from typing import Any, Dict, List, Optional

from trampoline_types.cell import CellDep, CellMeta, DepType, OutPoint
from trampoline_types.errors import UnresolvedReference
from trampoline_types.script import Script
from .transaction import Transaction

logger = logging.getLogger(__name__)


class ResolvedTransaction:
    """
    A transaction with every referenced cell materialized.

    Attributes:
        transaction (Transaction): The resolved transaction
        resolved_inputs (List[CellMeta]): One cell per input, in input order
        resolved_cell_deps (List[CellMeta]): One cell per cell dep, in dep order
    """

    def __init__(
        self,
        transaction: Transaction,
        resolved_inputs: List[CellMeta],
        resolved_cell_deps: List[CellMeta]
    ):
        self.transaction = transaction
        self.resolved_inputs = resolved_inputs
        self.resolved_cell_deps = resolved_cell_deps

    def dep_data_hashes(self) -> Dict[bytes, CellMeta]:
        """Map data hash to dep cell, for locating script code."""
        result: Dict[bytes, CellMeta] = {}
        for cell in self.resolved_cell_deps:
            result.setdefault(cell.data_hash, cell)
        return result

    def __repr__(self) -> str:
        return (
            f"ResolvedTransaction({self.transaction!r}, "
            f"inputs={len(self.resolved_inputs)}, cell_deps={len(self.resolved_cell_deps)})"
        )


class TransactionResolver:
    """
    Resolves transactions against a cell store.

    Attributes:
        store: Cell store providing get(), get_by_data_hash() and
            get_transaction_info()
    """

    def __init__(self, store: Any):
        """
        Initialize resolver.

        Args:
            store: CellStore (or any object with the same lookup methods)
        """
        self.store = store

    def materialize(self, out_point: OutPoint) -> CellMeta:
        """Load a live cell with its location record, or raise UnresolvedReference."""
        cell = self.store.get(out_point)
        if cell is None:
            raise UnresolvedReference(out_point)
        output, data = cell
        return CellMeta(
            cell_output=output,
            data=data,
            out_point=out_point,
            transaction_info=self.store.get_transaction_info(out_point),
        )

    def resolve(self, tx: Transaction) -> ResolvedTransaction:
        """
        Materialize every input and cell dep of a transaction.

        Args:
            tx: Transaction to resolve

        Returns:
            ResolvedTransaction with exactly one cell per input and dep

        Raises:
            UnresolvedReference: Naming the first missing reference, inputs
                checked before cell deps, each in declaration order
        """
        resolved_inputs = [self.materialize(out_point) for out_point in tx.input_pts()]
        resolved_cell_deps = [self.materialize(dep.out_point) for dep in tx.cell_deps]
        return ResolvedTransaction(tx, resolved_inputs, resolved_cell_deps)

    def find_cell_dep_for_script(self, script: Script) -> Optional[CellDep]:
        """
        Locate the code cell of a content-addressed script.

        Args:
            script: Script to locate

        Returns:
            CellDep for the deploying cell, or None for type-addressed scripts
            (identity addressing is not simulated)

        Raises:
            UnresolvedReference: If no deployed cell holds the script's code
        """
        if not script.hash_type.is_content_addressed():
            return None
        out_point = self.store.get_by_data_hash(script.code_hash)
        if out_point is None:
            raise UnresolvedReference(
                script.code_hash,
                f"Cannot find contract out point with data hash 0x{script.code_hash.hex()}",
            )
        return CellDep(out_point, DepType.CODE)

    def complete_dependencies(self, tx: Transaction) -> Transaction:
        """
        Add the code deps a transaction needs for its scripts.

        Explicit deps come first and are never dropped. Then, in order, the
        lock and type scripts of every input cell, the type scripts of every
        output and finally the output lock scripts are located. Duplicates
        are removed keeping the first occurrence. Output lock scripts do not
        run until the cell is spent, so their code is added only when it is
        deployed.

        Args:
            tx: Transaction to complete

        Returns:
            A new transaction with the completed cell deps

        Raises:
            UnresolvedReference: If the code of an input script or an output
                type script is not deployed
        """
        cell_deps: Dict[CellDep, None] = {}
        for dep in tx.cell_deps:
            cell_deps[dep] = None

        required: List[Script] = []
        for out_point in tx.input_pts():
            cell = self.store.get(out_point)
            if cell is None:
                # Reported by resolve()
                continue
            output, _ = cell
            required.append(output.lock)
            if output.type_ is not None:
                required.append(output.type_)

        optional: List[Script] = []
        for output in tx.outputs:
            if output.type_ is not None:
                required.append(output.type_)
            optional.append(output.lock)

        for script in required:
            dep = self.find_cell_dep_for_script(script)
            if dep is not None:
                cell_deps.setdefault(dep, None)

        for script in optional:
            if not script.hash_type.is_content_addressed():
                continue
            out_point = self.store.get_by_data_hash(script.code_hash)
            if out_point is not None:
                cell_deps.setdefault(CellDep(out_point, DepType.CODE), None)

        logger.debug("Completed %d cell deps for %r", len(cell_deps), tx)
        return tx.as_advanced_builder().set_cell_deps(cell_deps.keys()).build()
