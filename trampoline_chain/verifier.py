"""
Script verification gateway for Trampoline.

ScriptVerifier is the boundary to a script VM. SimulatedVerifier stands in
for one in tests: it groups scripts the way a VM would, checks that their code
is present among the resolved deps and that the hash type is active, then runs
a Python handler registered for the code hash.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from trampoline_transaction.resolver import ResolvedTransaction
from trampoline_types.cell import CellMeta, CellOutputWithData
from trampoline_types.errors import VerificationError
from trampoline_types.hashing import calc_data_hash
from trampoline_types.script import Script, ScriptHashType
from .block import EpochNumberWithFraction, Header
from .config import CONFIG, ChainConfig

logger = logging.getLogger(__name__)

# Code blob of the built-in always-success lock. The simulated verifier
# recognises it by data hash.
ALWAYS_SUCCESS = bytes.fromhex(
    "7f454c460201010000000000000000000200f3000100000078000100000000004000000000000000"
    "00000000000000000000000040003800010040000000000001000000050000000000000000000000"
    "00000100000000000000010000000000820000000000000082000000000000000010000000000000"
    "1305000093085005730000000000"
)
ALWAYS_SUCCESS_CODE_HASH = calc_data_hash(ALWAYS_SUCCESS)

DebugPrinter = Callable[[bytes, str], None]


class Consensus:
    """
    Consensus parameters relevant to script verification.

    Attributes:
        vm_selection_epoch (int): First epoch accepting DATA1 scripts
    """

    def __init__(self, vm_selection_epoch: int = CONFIG.vm_selection_epoch):
        self.vm_selection_epoch = vm_selection_epoch

    def is_data1_enabled(self, epoch_number: int) -> bool:
        return epoch_number >= self.vm_selection_epoch


class TxVerifyEnv:
    """Position in the chain a transaction is verified at."""

    def __init__(self, epoch: EpochNumberWithFraction):
        self.epoch = epoch

    @classmethod
    def new_commit(cls, header: Header) -> "TxVerifyEnv":
        return cls(header.epoch_with_fraction())


class Message:
    """
    A debug message emitted by a script.

    Attributes:
        id (bytes): Hash of the script that printed it
        message (str): Message text
    """

    def __init__(self, id: bytes, message: str):
        self.id = id
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self.id == other.id and self.message == other.message

    def __repr__(self) -> str:
        return f"Message(0x{self.id.hex()}, {self.message!r})"


class ScriptGroup:
    """
    All inputs and outputs sharing one script.

    Attributes:
        script (Script): The shared script
        group_type (str): "lock" or "type"
        input_indices (List[int]): Inputs carrying the script
        output_indices (List[int]): Outputs carrying the script
    """

    def __init__(self, script: Script, group_type: str):
        self.script = script
        self.group_type = group_type
        self.input_indices: List[int] = []
        self.output_indices: List[int] = []

    def script_hash(self) -> bytes:
        return self.script.calc_script_hash()


class ScriptContext:
    """What a handler sees when its script group runs."""

    def __init__(self, resolved_tx: ResolvedTransaction, group: ScriptGroup, debug: Callable[[str], None]):
        self.resolved_tx = resolved_tx
        self.group = group
        self.debug = debug

    @property
    def script(self) -> Script:
        return self.group.script

    def group_inputs(self) -> List[CellMeta]:
        return [self.resolved_tx.resolved_inputs[i] for i in self.group.input_indices]

    def group_outputs(self) -> List[CellOutputWithData]:
        tx = self.resolved_tx.transaction
        return [tx.output_with_data(i) for i in self.group.output_indices]


# A handler returns the cycles it consumed, or raises VerificationError.
ScriptHandler = Callable[[ScriptContext], int]


class ScriptVerifier(ABC):
    """Verifies every script of a resolved transaction."""

    @abstractmethod
    def verify(
        self,
        resolved_tx: ResolvedTransaction,
        max_cycles: int,
        consensus: Consensus,
        tx_env: TxVerifyEnv,
        debug_printer: Optional[DebugPrinter] = None
    ) -> int:
        """
        Run the transaction's scripts.

        Returns:
            Total cycles consumed

        Raises:
            VerificationError: If any script fails or the cycle budget runs out
        """


def collect_script_groups(resolved_tx: ResolvedTransaction) -> List[ScriptGroup]:
    """
    Group scripts the way a VM runs them.

    Lock groups come from input cells; type groups from input and output
    cells. Lock groups first, then type groups, each in order of first
    appearance.
    """
    locks: Dict[bytes, ScriptGroup] = {}
    types: Dict[bytes, ScriptGroup] = {}

    for i, cell in enumerate(resolved_tx.resolved_inputs):
        lock = cell.cell_output.lock
        locks.setdefault(lock.calc_script_hash(), ScriptGroup(lock, "lock")).input_indices.append(i)
        type_script = cell.cell_output.type_
        if type_script is not None:
            group = types.setdefault(type_script.calc_script_hash(), ScriptGroup(type_script, "type"))
            group.input_indices.append(i)

    for i, output in enumerate(resolved_tx.transaction.outputs):
        if output.type_ is not None:
            group = types.setdefault(output.type_.calc_script_hash(), ScriptGroup(output.type_, "type"))
            group.output_indices.append(i)

    return list(locks.values()) + list(types.values())


class SimulatedVerifier(ScriptVerifier):
    """
    Python stand-in for a script VM.

    Attributes:
        config (ChainConfig): Cycle cost of the always-success script
    """

    def __init__(self, config: ChainConfig = CONFIG):
        self.config = config
        self._handlers: Dict[bytes, ScriptHandler] = {}
        self.register(ALWAYS_SUCCESS_CODE_HASH, lambda ctx: self.config.always_success_cycles)

    def register(self, code_hash: bytes, handler: ScriptHandler) -> None:
        """Bind a handler to scripts whose code has the given data hash."""
        self._handlers[code_hash] = handler

    def register_code(self, code: bytes, handler: ScriptHandler) -> bytes:
        code_hash = calc_data_hash(code)
        self.register(code_hash, handler)
        return code_hash

    def _run_group(
        self,
        resolved_tx: ResolvedTransaction,
        group: ScriptGroup,
        consensus: Consensus,
        tx_env: TxVerifyEnv,
        debug_printer: Optional[DebugPrinter]
    ) -> int:
        script = group.script
        script_hash = group.script_hash()

        if not script.hash_type.is_content_addressed():
            raise VerificationError("type-addressed scripts are not simulated", script_hash)
        if script.hash_type == ScriptHashType.DATA1 and not consensus.is_data1_enabled(tx_env.epoch.number):
            raise VerificationError(
                f"data1 hash type is not active at epoch {tx_env.epoch.number}", script_hash
            )
        if script.code_hash not in resolved_tx.dep_data_hashes():
            raise VerificationError("script code is not in cell deps", script_hash)

        handler = self._handlers.get(script.code_hash)
        if handler is None:
            raise VerificationError("no handler registered for script code", script_hash)

        def debug(message: str) -> None:
            if debug_printer is not None:
                debug_printer(script_hash, message)

        try:
            cycles = handler(ScriptContext(resolved_tx, group, debug))
        except VerificationError:
            raise
        except Exception as e:
            raise VerificationError(f"script raised {e!r}", script_hash) from e
        return cycles

    def verify(
        self,
        resolved_tx: ResolvedTransaction,
        max_cycles: int,
        consensus: Consensus,
        tx_env: TxVerifyEnv,
        debug_printer: Optional[DebugPrinter] = None
    ) -> int:
        total = 0
        for group in collect_script_groups(resolved_tx):
            total += self._run_group(resolved_tx, group, consensus, tx_env, debug_printer)
            if total > max_cycles:
                raise VerificationError(f"exceeded max cycles {max_cycles}", group.script_hash())
        logger.debug("Verified %r in %d cycles", resolved_tx.transaction, total)
        return total
