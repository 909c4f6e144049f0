"""
Implementation of the Transaction and TransactionBuilder classes for Trampoline.

A transaction consumes cells (inputs), reads cells it needs to run its
scripts (cell deps) and creates new cells (outputs with their data).
Transactions are immutable; TransactionBuilder is the mutable working form
used while a transaction is being constructed.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from trampoline_types.cell import CellDep, CellInput, CellOutput, CellOutputWithData, OutPoint
from trampoline_types.hashing import blake2b_256, check_hash, to_hex
from trampoline_types.packing import pack_bytes, pack_dynvec, pack_fixvec, pack_table, pack_u32


class Transaction:
    """
    Immutable transaction.

    Attributes:
        version (int): Transaction format version
        cell_deps (Tuple[CellDep, ...]): Cells read but not consumed
        header_deps (Tuple[bytes, ...]): Block hashes the scripts may read
        inputs (Tuple[CellInput, ...]): Cells consumed
        outputs (Tuple[CellOutput, ...]): Output descriptors of created cells
        outputs_data (Tuple[bytes, ...]): Data of created cells, parallel to outputs
        witnesses (Tuple[bytes, ...]): Unsigned witness payloads
    """

    def __init__(
        self,
        version: int = 0,
        cell_deps: Iterable[CellDep] = (),
        header_deps: Iterable[bytes] = (),
        inputs: Iterable[CellInput] = (),
        outputs: Iterable[CellOutput] = (),
        outputs_data: Iterable[bytes] = (),
        witnesses: Iterable[bytes] = ()
    ):
        self._version = int(version)
        self._cell_deps: Tuple[CellDep, ...] = tuple(cell_deps)
        self._header_deps: Tuple[bytes, ...] = tuple(check_hash(h, "header_dep") for h in header_deps)
        self._inputs: Tuple[CellInput, ...] = tuple(inputs)
        self._outputs: Tuple[CellOutput, ...] = tuple(outputs)
        self._outputs_data: Tuple[bytes, ...] = tuple(bytes(d) for d in outputs_data)
        self._witnesses: Tuple[bytes, ...] = tuple(bytes(w) for w in witnesses)
        self._hash: Optional[bytes] = None

    @property
    def version(self) -> int:
        return self._version

    @property
    def cell_deps(self) -> Tuple[CellDep, ...]:
        return self._cell_deps

    @property
    def header_deps(self) -> Tuple[bytes, ...]:
        return self._header_deps

    @property
    def inputs(self) -> Tuple[CellInput, ...]:
        return self._inputs

    @property
    def outputs(self) -> Tuple[CellOutput, ...]:
        return self._outputs

    @property
    def outputs_data(self) -> Tuple[bytes, ...]:
        return self._outputs_data

    @property
    def witnesses(self) -> Tuple[bytes, ...]:
        return self._witnesses

    def input_pts(self) -> List[OutPoint]:
        """References of all consumed cells, in input order."""
        return [tx_input.previous_output for tx_input in self._inputs]

    def output_with_data(self, index: int) -> Optional[CellOutputWithData]:
        """
        Get an output together with its data.

        Returns:
            (CellOutput, data) or None if the index is out of range. Missing
            data for an existing output reads as empty bytes.
        """
        if index < 0 or index >= len(self._outputs):
            return None
        data = self._outputs_data[index] if index < len(self._outputs_data) else b""
        return self._outputs[index], data

    def outputs_with_data(self) -> List[CellOutputWithData]:
        return [self.output_with_data(i) for i in range(len(self._outputs))]

    def serialize_raw(self) -> bytes:
        """Canonical encoding of everything except witnesses."""
        return pack_table([
            pack_u32(self._version),
            pack_fixvec([dep.serialize() for dep in self._cell_deps]),
            pack_fixvec(list(self._header_deps)),
            pack_fixvec([tx_input.serialize() for tx_input in self._inputs]),
            pack_dynvec([output.serialize() for output in self._outputs]),
            pack_dynvec([pack_bytes(data) for data in self._outputs_data]),
        ])

    def hash(self) -> bytes:
        """
        Compute the transaction hash.

        Witnesses are excluded, so signing a transaction does not change it.

        Returns:
            bytes: 32-byte transaction hash
        """
        if self._hash is None:
            self._hash = blake2b_256(self.serialize_raw())
        return self._hash

    def as_advanced_builder(self) -> "TransactionBuilder":
        """Return a mutable builder pre-filled with this transaction."""
        return TransactionBuilder(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert transaction to dictionary for serialization."""
        return {
            "hash": to_hex(self.hash()),
            "version": hex(self._version),
            "cell_deps": [dep.to_dict() for dep in self._cell_deps],
            "header_deps": [to_hex(h) for h in self._header_deps],
            "inputs": [tx_input.to_dict() for tx_input in self._inputs],
            "outputs": [output.to_dict() for output in self._outputs],
            "outputs_data": [to_hex(data) for data in self._outputs_data],
            "witnesses": [to_hex(w) for w in self._witnesses],
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.hash() == other.hash() and self._witnesses == other._witnesses

    def __hash__(self) -> int:
        return hash(self.hash())

    def __repr__(self) -> str:
        return (
            f"Transaction(hash={to_hex(self.hash())}, inputs={len(self._inputs)}, "
            f"outputs={len(self._outputs)}, cell_deps={len(self._cell_deps)})"
        )


class TransactionBuilder:
    """
    Mutable working transaction.

    Every setter returns the builder so calls can be chained; build()
    freezes the current state into a Transaction.
    """

    def __init__(self, base: Optional[Transaction] = None):
        self._version = base.version if base else 0
        self._cell_deps: List[CellDep] = list(base.cell_deps) if base else []
        self._header_deps: List[bytes] = list(base.header_deps) if base else []
        self._inputs: List[CellInput] = list(base.inputs) if base else []
        self._outputs: List[CellOutput] = list(base.outputs) if base else []
        self._outputs_data: List[bytes] = list(base.outputs_data) if base else []
        self._witnesses: List[bytes] = list(base.witnesses) if base else []

    def version(self, version: int) -> "TransactionBuilder":
        self._version = version
        return self

    def cell_dep(self, cell_dep: CellDep) -> "TransactionBuilder":
        self._cell_deps.append(cell_dep)
        return self

    def cell_deps(self, cell_deps: Iterable[CellDep]) -> "TransactionBuilder":
        self._cell_deps.extend(cell_deps)
        return self

    def set_cell_deps(self, cell_deps: Iterable[CellDep]) -> "TransactionBuilder":
        self._cell_deps = list(cell_deps)
        return self

    def header_dep(self, block_hash: bytes) -> "TransactionBuilder":
        self._header_deps.append(block_hash)
        return self

    def input(self, cell_input: CellInput) -> "TransactionBuilder":
        self._inputs.append(cell_input)
        return self

    def inputs(self, cell_inputs: Iterable[CellInput]) -> "TransactionBuilder":
        self._inputs.extend(cell_inputs)
        return self

    def set_inputs(self, cell_inputs: Iterable[CellInput]) -> "TransactionBuilder":
        self._inputs = list(cell_inputs)
        return self

    def output(self, output: CellOutput) -> "TransactionBuilder":
        self._outputs.append(output)
        return self

    def outputs(self, outputs: Iterable[CellOutput]) -> "TransactionBuilder":
        self._outputs.extend(outputs)
        return self

    def set_outputs(self, outputs: Iterable[CellOutput]) -> "TransactionBuilder":
        self._outputs = list(outputs)
        return self

    def output_data(self, data: bytes) -> "TransactionBuilder":
        self._outputs_data.append(bytes(data))
        return self

    def outputs_data(self, outputs_data: Iterable[bytes]) -> "TransactionBuilder":
        self._outputs_data.extend(bytes(d) for d in outputs_data)
        return self

    def set_outputs_data(self, outputs_data: Iterable[bytes]) -> "TransactionBuilder":
        self._outputs_data = [bytes(d) for d in outputs_data]
        return self

    def output_with_data(self, output: CellOutput, data: bytes) -> "TransactionBuilder":
        """Append an output and its data together."""
        return self.output(output).output_data(data)

    def witness(self, witness: bytes) -> "TransactionBuilder":
        self._witnesses.append(bytes(witness))
        return self

    def set_witnesses(self, witnesses: Iterable[bytes]) -> "TransactionBuilder":
        self._witnesses = [bytes(w) for w in witnesses]
        return self

    def build(self) -> Transaction:
        return Transaction(
            version=self._version,
            cell_deps=self._cell_deps,
            header_deps=self._header_deps,
            inputs=self._inputs,
            outputs=self._outputs,
            outputs_data=self._outputs_data,
            witnesses=self._witnesses,
        )
