"""
Implementation of the MockChainTxProvider class for Trampoline.

Adapts a MockChain to the provider interfaces the generator pipeline talks
to: it answers cell queries from the chain's store and accepts transactions.
"""

import logging
from typing import Any, List, Optional

from trampoline_contract.generator import (
    AttributeKind, CellQuery, CellQueryAttribute, QueryProvider, StatementKind,
    TransactionProvider
)
from trampoline_transaction.transaction import Transaction
from trampoline_types.cell import CellMeta, OutPoint
from trampoline_types.errors import TrampolineError

logger = logging.getLogger(__name__)


class MockChainTxProvider(QueryProvider, TransactionProvider):
    """
    Query and transaction provider over a MockChain.

    Attributes:
        chain: The MockChain this provider reads and writes
    """

    def __init__(self, chain: Any):
        self.chain = chain

    def send_tx(self, tx: Transaction) -> Optional[bytes]:
        """
        Complete dependencies, verify and apply a transaction.

        Returns:
            Transaction hash, or None if the chain rejected it
        """
        try:
            tx = self.chain.complete_tx(tx)
            return self.chain.receive_tx(tx)
        except TrampolineError as e:
            logger.warning("Transaction rejected: %s", e)
            return None

    def verify_tx(self, tx: Transaction) -> bool:
        """Complete dependencies, then verify without applying."""
        try:
            tx = self.chain.complete_tx(tx)
            self.chain.verify_tx(tx)
        except TrampolineError as e:
            logger.warning("Transaction failed verification: %s", e)
            return False
        return True

    def complete_tx(self, tx: Transaction) -> Transaction:
        return self.chain.complete_tx(tx)

    def _matches(self, attribute: CellQueryAttribute, out_point: OutPoint) -> bool:
        cell = self.chain.get_cell(out_point)
        if cell is None:
            return False
        output, data = cell

        kind = attribute.kind
        if kind == AttributeKind.LOCK_HASH:
            return output.calc_lock_hash() == attribute.value
        if kind == AttributeKind.LOCK_SCRIPT:
            return output.lock == attribute.value
        if kind == AttributeKind.TYPE_HASH:
            return output.calc_type_hash() == attribute.value
        if kind == AttributeKind.TYPE_SCRIPT:
            return output.type_ == attribute.value
        if kind == AttributeKind.DATA_HASH:
            return self.chain.store.get_cell_data_hash(out_point) == attribute.value
        if kind == AttributeKind.MIN_CAPACITY:
            return output.capacity >= attribute.value
        if kind == AttributeKind.MAX_CAPACITY:
            return output.capacity <= attribute.value
        raise ValueError(f"Unknown query attribute {kind!r}")

    def _candidates(self, attribute: CellQueryAttribute) -> List[OutPoint]:
        kind = attribute.kind
        if kind == AttributeKind.LOCK_HASH:
            return self.chain.get_cells_by_lock_hash(attribute.value)
        if kind == AttributeKind.LOCK_SCRIPT:
            return self.chain.get_cells_by_lock_hash(attribute.value.calc_script_hash())
        if kind == AttributeKind.TYPE_HASH:
            return self.chain.get_cells_by_type_hash(attribute.value)
        if kind == AttributeKind.TYPE_SCRIPT:
            return self.chain.get_cells_by_type_hash(attribute.value.calc_script_hash())

        # No index on these; scan in store order
        return [
            out_point for out_point in self.chain.store.all_out_points()
            if self._matches(attribute, out_point)
        ]

    def query(self, query: CellQuery) -> Optional[List[OutPoint]]:
        """
        Evaluate a query against the chain's live cells.

        Args:
            query: Query to evaluate

        Returns:
            Matching out points truncated to the query's limit, or None if
            nothing matches
        """
        statement = query.statement
        attributes = statement.attributes

        if statement.kind == StatementKind.SINGLE:
            found = self._candidates(attributes[0])
        elif statement.kind == StatementKind.FILTER_FROM:
            found = [op for op in self._candidates(attributes[0]) if self._matches(attributes[1], op)]
        elif statement.kind == StatementKind.ANY:
            seen = {}
            for attribute in attributes:
                for out_point in self._candidates(attribute):
                    seen.setdefault(out_point, None)
            found = list(seen)
        elif statement.kind == StatementKind.ALL:
            found = [
                op for op in self._candidates(attributes[0])
                if all(self._matches(attribute, op) for attribute in attributes[1:])
            ]
        else:
            raise ValueError(f"Unknown query statement {statement.kind!r}")

        found = query.truncate(found)
        logger.debug("Query %r matched %d cells", query, len(found))
        return found or None

    def query_cell_meta(self, query: CellQuery) -> Optional[List[CellMeta]]:
        out_points = self.query(query)
        if out_points is None:
            return None
        return [self.chain.resolver.materialize(out_point) for out_point in out_points]
