"""
Implementation of the transaction Generator pipeline for Trampoline.

A generation pass folds an ordered list of middleware over a working
transaction. Middleware first contribute cell queries to a shared registry;
the queries are drained against a query provider to form the input set; then
every middleware rewrites the transaction; finally a chain service completes
the code dependencies.
"""

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Tuple

from trampoline_transaction.transaction import Transaction, TransactionBuilder
from trampoline_types.cell import CellInput, CellMeta, OutPoint
from trampoline_types.errors import QueryUnsatisfied
from trampoline_types.hashing import check_hash
from trampoline_types.script import Script

logger = logging.getLogger(__name__)


class AttributeKind(Enum):
    LOCK_HASH = "lock_hash"
    LOCK_SCRIPT = "lock_script"
    TYPE_HASH = "type_hash"
    TYPE_SCRIPT = "type_script"
    DATA_HASH = "data_hash"
    MIN_CAPACITY = "min_capacity"
    MAX_CAPACITY = "max_capacity"


class CellQueryAttribute:
    """
    One predicate over a cell.

    Attributes:
        kind (AttributeKind): Which cell field the predicate looks at
        value: 32-byte hash, Script or capacity in shannons depending on kind
    """

    def __init__(self, kind: AttributeKind, value: Any):
        if kind in (AttributeKind.LOCK_HASH, AttributeKind.TYPE_HASH, AttributeKind.DATA_HASH):
            check_hash(value, kind.value)
        elif kind in (AttributeKind.LOCK_SCRIPT, AttributeKind.TYPE_SCRIPT):
            if not isinstance(value, Script):
                raise ValueError(f"{kind.value} requires a Script")
        elif not isinstance(value, int) or value < 0:
            raise ValueError(f"{kind.value} requires a non-negative capacity")
        self.kind = kind
        self.value = value

    @classmethod
    def lock_hash(cls, value: bytes) -> "CellQueryAttribute":
        return cls(AttributeKind.LOCK_HASH, value)

    @classmethod
    def lock_script(cls, value: Script) -> "CellQueryAttribute":
        return cls(AttributeKind.LOCK_SCRIPT, value)

    @classmethod
    def type_hash(cls, value: bytes) -> "CellQueryAttribute":
        return cls(AttributeKind.TYPE_HASH, value)

    @classmethod
    def type_script(cls, value: Script) -> "CellQueryAttribute":
        return cls(AttributeKind.TYPE_SCRIPT, value)

    @classmethod
    def data_hash(cls, value: bytes) -> "CellQueryAttribute":
        return cls(AttributeKind.DATA_HASH, value)

    @classmethod
    def min_capacity(cls, value: int) -> "CellQueryAttribute":
        return cls(AttributeKind.MIN_CAPACITY, value)

    @classmethod
    def max_capacity(cls, value: int) -> "CellQueryAttribute":
        return cls(AttributeKind.MAX_CAPACITY, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellQueryAttribute):
            return NotImplemented
        return self.kind == other.kind and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.kind, self.value))

    def __repr__(self) -> str:
        value = f"0x{self.value.hex()}" if isinstance(self.value, bytes) else repr(self.value)
        return f"{self.kind.value}={value}"


class StatementKind(Enum):
    SINGLE = "single"
    FILTER_FROM = "filter_from"
    ANY = "any"
    ALL = "all"


class QueryStatement:
    """
    Composition of attributes.

    SINGLE matches one attribute. FILTER_FROM takes the cells matching the
    first attribute and keeps those matching the second. ANY is the ordered
    union of its attributes' matches. ALL keeps the cells matching every
    attribute, in the order of the first one.
    """

    def __init__(self, kind: StatementKind, attributes: List[CellQueryAttribute]):
        if not attributes:
            raise ValueError("Query statement needs at least one attribute")
        if kind == StatementKind.SINGLE and len(attributes) != 1:
            raise ValueError("SINGLE statement takes exactly one attribute")
        if kind == StatementKind.FILTER_FROM and len(attributes) != 2:
            raise ValueError("FILTER_FROM statement takes exactly two attributes")
        self.kind = kind
        self.attributes: Tuple[CellQueryAttribute, ...] = tuple(attributes)

    @classmethod
    def single(cls, attribute: CellQueryAttribute) -> "QueryStatement":
        return cls(StatementKind.SINGLE, [attribute])

    @classmethod
    def filter_from(cls, primary: CellQueryAttribute, condition: CellQueryAttribute) -> "QueryStatement":
        return cls(StatementKind.FILTER_FROM, [primary, condition])

    @classmethod
    def any(cls, *attributes: CellQueryAttribute) -> "QueryStatement":
        return cls(StatementKind.ANY, list(attributes))

    @classmethod
    def all(cls, *attributes: CellQueryAttribute) -> "QueryStatement":
        return cls(StatementKind.ALL, list(attributes))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryStatement):
            return NotImplemented
        return self.kind == other.kind and self.attributes == other.attributes

    def __hash__(self) -> int:
        return hash((self.kind, self.attributes))

    def __repr__(self) -> str:
        return f"{self.kind.value}({', '.join(repr(a) for a in self.attributes)})"


class CellQuery:
    """
    A request for input cells.

    Attributes:
        statement (QueryStatement): Predicate over cells
        limit (Optional[int]): Maximum number of cells to take, None for all
    """

    def __init__(self, statement: QueryStatement, limit: Optional[int] = None):
        if limit is not None and limit < 1:
            raise ValueError("Query limit must be at least 1")
        self.statement = statement
        self.limit = limit

    def truncate(self, items: List[Any]) -> List[Any]:
        if self.limit is None:
            return list(items)
        return list(items[:self.limit])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellQuery):
            return NotImplemented
        return self.statement == other.statement and self.limit == other.limit

    def __hash__(self) -> int:
        return hash((self.statement, self.limit))

    def __repr__(self) -> str:
        return f"CellQuery({self.statement!r}, limit={self.limit})"


class CellQueryRegistry:
    """Ordered list of pending queries shared by the middleware of one pass."""

    def __init__(self):
        self._queries: List[CellQuery] = []
        self._lock = threading.Lock()

    def register(self, query: CellQuery) -> None:
        with self._lock:
            self._queries.append(query)

    def extend(self, queries: List[CellQuery]) -> None:
        with self._lock:
            self._queries.extend(queries)

    def pending(self) -> List[CellQuery]:
        """Snapshot of the registered queries, in registration order."""
        with self._lock:
            return list(self._queries)

    def drain(self) -> List[CellQuery]:
        """Return every registered query and empty the registry."""
        with self._lock:
            queries = self._queries
            self._queries = []
        return queries

    def __len__(self) -> int:
        with self._lock:
            return len(self._queries)


class CellMetaTransaction:
    """
    State of a generation pass.

    Attributes:
        tx (Transaction): Working transaction
        inputs (List[CellMeta]): Cells drained from queries, in input order
    """

    def __init__(self, tx: Transaction, inputs: Optional[List[CellMeta]] = None):
        self.tx = tx
        self.inputs = list(inputs or [])

    def with_tx(self, tx: Transaction) -> "CellMetaTransaction":
        return CellMetaTransaction(tx, self.inputs)

    def __repr__(self) -> str:
        return f"CellMetaTransaction({self.tx!r}, inputs={len(self.inputs)})"


class QueryProvider(ABC):
    """Answers cell queries."""

    @abstractmethod
    def query(self, query: CellQuery) -> Optional[List[OutPoint]]:
        """Return matching out points, or None when nothing matches."""

    @abstractmethod
    def query_cell_meta(self, query: CellQuery) -> Optional[List[CellMeta]]:
        """Return matching cells, or None when nothing matches."""


class TransactionProvider(ABC):
    """Accepts transactions."""

    @abstractmethod
    def send_tx(self, tx: Transaction) -> Optional[bytes]:
        """Submit a transaction; return its hash, or None if rejected."""

    @abstractmethod
    def verify_tx(self, tx: Transaction) -> bool:
        """Check a transaction without committing it."""

    @abstractmethod
    def complete_tx(self, tx: Transaction) -> Transaction:
        """Fill in the cell deps a transaction needs."""


class GeneratorMiddleware(ABC):
    """One stage of a generation pass."""

    @abstractmethod
    def update_query_register(self, tx: CellMetaTransaction, registry: CellQueryRegistry) -> None:
        """Contribute queries for input cells."""

    @abstractmethod
    def pipe(self, tx: CellMetaTransaction, registry: CellQueryRegistry) -> CellMetaTransaction:
        """Rewrite the working transaction."""


class Generator(GeneratorMiddleware):
    """
    Runs a middleware pipeline over a base transaction.

    The chain service is anything with complete_tx(tx) -> Transaction (a
    MockChain, for instance). Without one the dependency completion step is
    skipped.
    """

    def __init__(self):
        self._middleware: List[GeneratorMiddleware] = []
        self._chain_service: Optional[Any] = None
        self._query_service: Optional[QueryProvider] = None
        self._tx = TransactionBuilder().build()

    def pipeline(self, middleware: List[GeneratorMiddleware]) -> "Generator":
        self._middleware = list(middleware)
        return self

    def chain_service(self, chain_service: Any) -> "Generator":
        """Set what finalizes generated transactions; anything with complete_tx()."""
        self._chain_service = chain_service
        return self

    def query_service(self, query_service: QueryProvider) -> "Generator":
        self._query_service = query_service
        return self

    def transaction(self, tx: Transaction) -> "Generator":
        self._tx = tx
        return self

    def query(self, query: CellQuery) -> Optional[List[CellMeta]]:
        if self._query_service is None:
            raise ValueError("Generator has no query service")
        return self._query_service.query_cell_meta(query)

    def resolve_queries(self, registry: CellQueryRegistry) -> List[CellMeta]:
        """
        Drain a registry against the query service.

        Args:
            registry: Registry to drain; it is empty afterwards

        Returns:
            Cells of every query concatenated in registration order, each
            query truncated to its limit

        Raises:
            QueryUnsatisfied: If any query finds nothing
        """
        cells: List[CellMeta] = []
        for query in registry.drain():
            found = self.query(query)
            if not found:
                raise QueryUnsatisfied(query)
            found = query.truncate(found)
            logger.debug("Query %r resolved %d cells", query, len(found))
            cells.extend(found)
        return cells

    def _set_inputs(self, state: CellMetaTransaction, cells: List[CellMeta]) -> CellMetaTransaction:
        tx = (
            state.tx.as_advanced_builder()
            .set_inputs([CellInput(cell.out_point) for cell in cells])
            .build()
        )
        return CellMetaTransaction(tx, cells)

    def _fold(self, state: CellMetaTransaction, registry: CellQueryRegistry) -> CellMetaTransaction:
        for middleware in self._middleware:
            middleware.update_query_register(state, registry)
        logger.debug("Pipeline registered %d queries", len(registry))

        # Base transaction inputs survive a pass that registers no queries
        if len(registry):
            state = self._set_inputs(state, self.resolve_queries(registry))

        for middleware in self._middleware:
            state = middleware.pipe(state, registry)

        # Queries registered while piping are resolved once more
        if len(registry):
            late = self.resolve_queries(registry)
            state = self._set_inputs(state, state.inputs + late)
        return state

    def generate(self) -> Transaction:
        """
        Run one generation pass.

        Returns:
            The generated transaction; the base transaction is left untouched

        Raises:
            QueryUnsatisfied: If a registered query finds nothing
            TrampolineError: Whatever a middleware or the chain service raises
        """
        state = self._fold(CellMetaTransaction(self._tx), CellQueryRegistry())
        tx = state.tx
        if self._chain_service is not None:
            tx = self._chain_service.complete_tx(tx)
        logger.debug("Generated transaction %r", tx)
        return tx

    def update_query_register(self, tx: CellMetaTransaction, registry: CellQueryRegistry) -> None:
        for middleware in self._middleware:
            middleware.update_query_register(tx, registry)

    def pipe(self, tx: CellMetaTransaction, registry: CellQueryRegistry) -> CellMetaTransaction:
        for middleware in self._middleware:
            tx = middleware.pipe(tx, registry)
        return tx
