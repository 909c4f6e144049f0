"""
Implementation of the MockChain class for Trampoline.

MockChain is an in-memory ledger for contract tests. It composes a cell
store, a script builder, a transaction resolver and a script verifier, and
applies verified transactions by creating their outputs.
"""

import logging
import threading
from typing import Any, List, Optional

from trampoline_cell.store import CellStore
from trampoline_transaction.resolver import ResolvedTransaction, TransactionResolver
from trampoline_transaction.script_builder import ScriptBuilder
from trampoline_transaction.transaction import Transaction
from trampoline_types.cell import (
    CellDep, CellOutput, CellOutputWithData, OutPoint, capacity_bytes
)
from trampoline_types.errors import VerificationError
from trampoline_types.script import Script, ScriptHashType
from .block import EpochNumberWithFraction
from .config import CONFIG, ChainConfig
from .provider import MockChainTxProvider
from .verifier import (
    ALWAYS_SUCCESS, Consensus, Message, ScriptVerifier, SimulatedVerifier, TxVerifyEnv
)

logger = logging.getLogger(__name__)


class MockChain:
    """
    In-memory chain for running transactions in tests.

    Attributes:
        config (ChainConfig): Cycle and epoch defaults
        store (CellStore): Live cells, indices and block links
        resolver (TransactionResolver): Resolution and dependency completion
        script_builder (ScriptBuilder): Builds scripts from deployed code
        verifier (ScriptVerifier): Runs transaction scripts
        default_lock (OutPoint): Code cell of the default lock script
    """

    def __init__(self, verifier: Optional[ScriptVerifier] = None, config: ChainConfig = CONFIG):
        """
        Initialize chain with the always-success lock deployed.

        Args:
            verifier: Script verifier (defaults to a SimulatedVerifier)
            config: Chain configuration
        """
        self.config = config
        self.store = CellStore()
        self.resolver = TransactionResolver(self.store)
        self.script_builder = ScriptBuilder(self.store)
        self.verifier = verifier if verifier is not None else SimulatedVerifier(config)

        self._capture_debug = False
        self._messages: List[Message] = []
        self._messages_lock = threading.Lock()

        # Set by genesis_block_from_chain
        self.genesis_info: Optional[Any] = None

        self.default_lock = self.deploy_cell_with_data(ALWAYS_SUCCESS)

    # Default lock

    def get_default_script_out_point(self) -> OutPoint:
        return self.default_lock

    def default_lock_script(self, args: bytes = b"") -> Script:
        return self.build_script(self.default_lock, args)

    def set_default_lock(self, contract: Any) -> OutPoint:
        """
        Deploy a contract's code and use it as the default lock.

        Args:
            contract: Anything with as_code_cell() -> (CellOutput, bytes)

        Returns:
            OutPoint of the deployed code cell
        """
        output, data = contract.as_code_cell()
        self.default_lock = self.deploy_cell_output(data, output)
        return self.default_lock

    def generate_cell_with_default_lock(self, lock_args: bytes = b"") -> CellOutputWithData:
        """Empty cell locked by the default lock, with exactly the capacity it occupies."""
        lock = self.default_lock_script(lock_args)
        output = CellOutput(capacity=0, lock=lock)
        return output.replace(capacity=output.occupied_capacity(b"")), b""

    def deploy_random_cell_with_default_lock(self, capacity: int, args: Optional[bytes] = None) -> OutPoint:
        """
        Create an empty cell locked by the default lock.

        Args:
            capacity: Capacity in CKB
            args: Lock args (empty when None)

        Returns:
            Random OutPoint of the new cell
        """
        lock = self.default_lock_script(args or b"")
        return self.create_cell(CellOutput(capacity=capacity_bytes(capacity), lock=lock), b"")

    # Cells

    def deploy_cell_with_data(self, data: bytes) -> OutPoint:
        return self.store.deploy_with_data(data)

    def deploy_cell_output(self, data: bytes, output: CellOutput) -> OutPoint:
        return self.store.deploy_output(data, output)

    def deploy_cell(self, cell: CellOutputWithData) -> OutPoint:
        output, data = cell
        return self.store.deploy_output(data, output)

    def create_cell(self, output: CellOutput, data: bytes) -> OutPoint:
        return self.store.create_cell(output, data)

    def create_cell_with_out_point(self, out_point: OutPoint, output: CellOutput, data: bytes) -> None:
        self.store.create_cell_with_out_point(out_point, output, data)

    def get_cell(self, out_point: OutPoint) -> Optional[CellOutputWithData]:
        return self.store.get(out_point)

    def get_cell_by_data_hash(self, data_hash: bytes) -> Optional[OutPoint]:
        return self.store.get_by_data_hash(data_hash)

    def get_cells_by_lock_hash(self, lock_hash: bytes) -> List[OutPoint]:
        return self.store.get_by_lock_hash(lock_hash)

    def get_cells_by_type_hash(self, type_hash: bytes) -> List[OutPoint]:
        return self.store.get_by_type_hash(type_hash)

    def insert_header(self, header: Any) -> None:
        self.store.insert_header(header)

    def link_cell_with_block(self, out_point: OutPoint, block_hash: bytes, tx_index: int) -> None:
        self.store.link(out_point, block_hash, tx_index)

    # Scripts and transactions

    def build_script(self, code_out_point: OutPoint, args: bytes = b"") -> Optional[Script]:
        return self.script_builder.build(code_out_point, ScriptHashType.DATA1, args)

    def build_script_with_hash_type(
        self,
        code_out_point: OutPoint,
        hash_type: ScriptHashType,
        args: bytes = b""
    ) -> Optional[Script]:
        return self.script_builder.build(code_out_point, hash_type, args)

    def find_cell_dep_for_script(self, script: Script) -> Optional[CellDep]:
        return self.resolver.find_cell_dep_for_script(script)

    def complete_tx(self, tx: Transaction) -> Transaction:
        return self.resolver.complete_dependencies(tx)

    def build_resolved_tx(self, tx: Transaction) -> ResolvedTransaction:
        return self.resolver.resolve(tx)

    # Debug output

    def capture_debug(self) -> bool:
        return self._capture_debug

    def set_capture_debug(self, capture_debug: bool) -> None:
        self._capture_debug = capture_debug

    def captured_messages(self) -> List[Message]:
        with self._messages_lock:
            return list(self._messages)

    def _debug_printer(self, script_hash: bytes, message: str) -> None:
        if self._capture_debug:
            with self._messages_lock:
                self._messages.append(Message(script_hash, message))
        else:
            logger.info(
                "%s script group: 0x%s DEBUG OUTPUT: %s",
                self.config.contract_debug_prefix, script_hash.hex(), message,
            )

    # Verification

    def default_consensus(self) -> Consensus:
        return Consensus(vm_selection_epoch=self.config.vm_selection_epoch)

    def default_tx_env(self) -> TxVerifyEnv:
        return TxVerifyEnv(EpochNumberWithFraction(self.config.default_verify_epoch, 0, 1))

    def verify_tx_consensus(self, tx: Transaction) -> None:
        """Structural checks that run before any script."""
        if len(tx.outputs) != len(tx.outputs_data):
            raise VerificationError(
                f"outputs ({len(tx.outputs)}) and outputs data ({len(tx.outputs_data)}) length mismatch"
            )

    def verify_tx_by_context(
        self,
        tx: Transaction,
        max_cycles: int,
        consensus: Consensus,
        tx_env: TxVerifyEnv
    ) -> int:
        """
        Verify a transaction in an explicit consensus context.

        Args:
            tx: Transaction to verify
            max_cycles: Cycle budget
            consensus: Consensus parameters
            tx_env: Epoch the transaction is verified at

        Returns:
            Cycles consumed

        Raises:
            VerificationError: If the structure or any script is rejected
            UnresolvedReference: If an input or cell dep is not live
        """
        self.verify_tx_consensus(tx)
        resolved = self.build_resolved_tx(tx)
        return self.verifier.verify(resolved, max_cycles, consensus, tx_env, self._debug_printer)

    def verify_tx(self, tx: Transaction, max_cycles: Optional[int] = None) -> int:
        """Verify a transaction in the default context (see verify_tx_by_context)."""
        if max_cycles is None:
            max_cycles = self.config.max_cycles
        return self.verify_tx_by_context(tx, max_cycles, self.default_consensus(), self.default_tx_env())

    def receive_tx(self, tx: Transaction) -> bytes:
        """
        Verify a transaction and create its outputs.

        Outputs become live at (tx hash, index). Inputs stay in the store;
        tracking spent cells is left to the caller.

        Args:
            tx: Transaction to apply

        Returns:
            Transaction hash

        Raises:
            VerificationError: If the transaction is rejected; nothing is applied
            UnresolvedReference: If an input or cell dep is not live
        """
        cycles = self.verify_tx(tx)
        tx_hash = tx.hash()
        for index, (output, data) in enumerate(tx.outputs_with_data()):
            self.store.create_cell_with_out_point(OutPoint(tx_hash, index), output, data)
        logger.info("Received tx 0x%s with %d outputs (%d cycles)", tx_hash.hex(), len(tx.outputs), cycles)
        return tx_hash

    def inner(self) -> MockChainTxProvider:
        """Provider view of this chain (shares the chain, does not copy it)."""
        return MockChainTxProvider(self)
