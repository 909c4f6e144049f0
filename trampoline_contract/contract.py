"""
Implementation of the Contract class for Trampoline.

A Contract binds a code blob to typed args and data schemas. It produces the
code cell that deploys it and the script other cells use to reference it,
and acts as generator middleware: input rules contribute cell queries, output
rules rewrite the fields of every output that carries its script.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple, Type

from trampoline_transaction.transaction import Transaction
from trampoline_types.cell import CellDep, CellOutput, CellOutputWithData, DepType, OutPoint, capacity_bytes
from trampoline_types.errors import OutputRuleError, UnresolvedReference
from trampoline_types.hashing import calc_data_hash
from trampoline_types.script import Script, ScriptHashType
from .generator import CellMetaTransaction, CellQuery, CellQueryRegistry, GeneratorMiddleware
from .schema import SchemaType

logger = logging.getLogger(__name__)


class ContractSource(ABC):
    """Where a contract's code comes from."""

    @abstractmethod
    def load(self, store: Any = None) -> bytes:
        """Return the code blob."""


class LocalPath(ContractSource):
    def __init__(self, path: str):
        self.path = Path(path)

    def load(self, store: Any = None) -> bytes:
        return self.path.read_bytes()

    def __repr__(self) -> str:
        return f"LocalPath({str(self.path)!r})"


class Immediate(ContractSource):
    def __init__(self, code: bytes):
        self.code = bytes(code)

    def load(self, store: Any = None) -> bytes:
        return self.code

    def __repr__(self) -> str:
        return f"Immediate({len(self.code)} bytes)"


class Chain(ContractSource):
    """Code already deployed in a cell store."""

    def __init__(self, out_point: OutPoint):
        self.out_point = out_point

    def load(self, store: Any = None) -> bytes:
        if store is None:
            raise ValueError("Loading code from a chain cell requires a store")
        data = store.get_cell_data(self.out_point)
        if data is None:
            raise UnresolvedReference(self.out_point)
        return data

    def __repr__(self) -> str:
        return f"Chain({self.out_point!r})"


class ContractCellFieldSelector(Enum):
    ARGS = "args"
    DATA = "data"
    LOCK_SCRIPT = "lock_script"
    TYPE_SCRIPT = "type_script"
    CAPACITY = "capacity"


OutputRule = Callable[[Any], Any]
InputRule = Callable[[Transaction], CellQuery]


class Contract(GeneratorMiddleware):
    """
    A contract and the cells that use it.

    Attributes:
        args_schema (Type[SchemaType]): Schema of the script args
        data_schema (Type[SchemaType]): Schema of the data of cells using the contract
        source (Optional[ContractSource]): Where the code was loaded from
        code (Optional[bytes]): Code blob
        args (SchemaType): Current args value
        data (SchemaType): Current data value
        output_rules (List[Tuple[ContractCellFieldSelector, OutputRule]]): Rules in registration order
        input_rules (List[InputRule]): Query rules in registration order
    """

    def __init__(
        self,
        args_schema: Type[SchemaType],
        data_schema: Type[SchemaType],
        source: Optional[ContractSource] = None,
        code: Optional[bytes] = None
    ):
        """
        Initialize contract.

        Local and immediate sources are loaded right away; a Chain source is
        loaded with load_code().

        Args:
            args_schema: Schema of the script args
            data_schema: Schema of cell data
            source: Code source
            code: Code blob, overriding the source
        """
        self.args_schema = args_schema
        self.data_schema = data_schema
        self.source = source
        self.code = code
        if self.code is None and source is not None and not isinstance(source, Chain):
            self.code = source.load()

        self.args = args_schema.default()
        self.data = data_schema.default()
        self._lock: Optional[Script] = None
        self._type: Optional[Script] = None
        self.output_rules: List[Tuple[ContractCellFieldSelector, OutputRule]] = []
        self.input_rules: List[InputRule] = []

    def load_code(self, store: Any) -> bytes:
        """Load the code from the configured source."""
        if self.source is None:
            raise ValueError("Contract has no code source")
        self.code = self.source.load(store)
        return self.code

    def lock(self, lock: Script) -> "Contract":
        """Set the lock script of the code cell."""
        self._lock = lock
        return self

    def type_(self, type_: Script) -> "Contract":
        """Set the type script of the code cell."""
        self._type = type_
        return self

    def data_hash(self) -> Optional[bytes]:
        if self.code is None:
            return None
        return calc_data_hash(self.code)

    def as_script(self) -> Optional[Script]:
        """Script referencing this contract by code hash, with the current args."""
        data_hash = self.data_hash()
        if data_hash is None:
            return None
        return Script(data_hash, ScriptHashType.DATA1, self.args.to_bytes())

    def script_hash(self) -> Optional[bytes]:
        script = self.as_script()
        if script is None:
            return None
        return script.calc_script_hash()

    def as_code_cell(self) -> CellOutputWithData:
        data = self.code or b""
        output = CellOutput(
            capacity=capacity_bytes(len(data)),
            lock=self._lock,
            type_=self._type,
        )
        return output, data

    def as_cell_dep(self, out_point: OutPoint) -> CellDep:
        return CellDep(out_point, DepType.CODE)

    def _checked(self, schema: Type[SchemaType], value: Any) -> SchemaType:
        if not isinstance(value, schema):
            raise ValueError(f"Expected {schema.__name__}, got {type(value).__name__}")
        return value

    def set_data(self, data: SchemaType) -> None:
        self.data = self._checked(self.data_schema, data)

    def set_raw_data(self, data: str) -> None:
        """Set data from its JSON (0x hex) form."""
        self.data = self.data_schema.from_json_bytes(data)

    def set_args(self, args: SchemaType) -> None:
        self.args = self._checked(self.args_schema, args)

    def set_raw_args(self, args: str) -> None:
        """Set args from their JSON (0x hex) form."""
        self.args = self.args_schema.from_json_bytes(args)

    def read_data(self) -> SchemaType:
        return self.data

    def read_args(self) -> SchemaType:
        return self.args

    def read_raw_data(self, data: bytes) -> SchemaType:
        return self.data_schema.from_bytes(data)

    def read_raw_args(self, args: bytes) -> SchemaType:
        return self.args_schema.from_bytes(args)

    def add_output_rule(self, field: ContractCellFieldSelector, transform: OutputRule) -> None:
        """
        Register a rewrite of one field of matching outputs.

        The rule gets the current value and returns its replacement: a
        data_schema value for DATA, an args_schema value for ARGS, a Script
        for LOCK_SCRIPT, a Script or None for TYPE_SCRIPT and an int number
        of shannons for CAPACITY.
        """
        self.output_rules.append((field, transform))

    def add_input_rule(self, query: InputRule) -> None:
        self.input_rules.append(query)

    def _apply_rules(self, output: CellOutput, data: bytes, script_hash: bytes) -> CellOutputWithData:
        # Matching is decided once, before any rule changes a script
        lock_matches = output.calc_lock_hash() == script_hash
        type_matches = output.calc_type_hash() == script_hash

        for selector, rule in self.output_rules:
            if selector == ContractCellFieldSelector.DATA:
                value = rule(self.read_raw_data(data))
                if not isinstance(value, self.data_schema):
                    raise OutputRuleError(selector, value)
                data = value.to_bytes()

            elif selector == ContractCellFieldSelector.ARGS:
                current = output.type_ if type_matches else output.lock
                value = rule(self.read_raw_args(current.args))
                if not isinstance(value, self.args_schema):
                    raise OutputRuleError(selector, value)
                args = value.to_bytes()
                if lock_matches:
                    output = output.replace(lock=output.lock.with_args(args))
                if type_matches:
                    output = output.replace(type_=output.type_.with_args(args))

            elif selector == ContractCellFieldSelector.LOCK_SCRIPT:
                value = rule(output.lock)
                if not isinstance(value, Script):
                    raise OutputRuleError(selector, value)
                output = output.replace(lock=value)

            elif selector == ContractCellFieldSelector.TYPE_SCRIPT:
                value = rule(output.type_)
                if value is not None and not isinstance(value, Script):
                    raise OutputRuleError(selector, value)
                output = output.replace(type_=value)

            elif selector == ContractCellFieldSelector.CAPACITY:
                value = rule(output.capacity)
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise OutputRuleError(selector, value)
                output = output.replace(capacity=value)

        return output, data

    def update_query_register(self, tx: CellMetaTransaction, registry: CellQueryRegistry) -> None:
        for rule in self.input_rules:
            registry.register(rule(tx.tx))

    def pipe(self, tx: CellMetaTransaction, registry: CellQueryRegistry) -> CellMetaTransaction:
        """
        Apply the output rules to every output carrying this contract's script.

        An output matches when its lock hash or type hash equals
        script_hash(). Other outputs are kept unchanged and in place. The
        outputs data list keeps its length, so a count mismatch with the
        outputs is left for verification to report.
        """
        script_hash = self.script_hash()
        if script_hash is None or not self.output_rules:
            return tx

        outputs: List[CellOutput] = []
        outputs_data = list(tx.tx.outputs_data)
        matched = 0
        for index, (output, data) in enumerate(tx.tx.outputs_with_data()):
            if output.calc_lock_hash() == script_hash or output.calc_type_hash() == script_hash:
                output, data = self._apply_rules(output, data, script_hash)
                matched += 1
                # Outputs without data stay without it
                if index < len(outputs_data):
                    outputs_data[index] = data
            outputs.append(output)

        logger.debug("Contract 0x%s rewrote %d outputs", script_hash.hex(), matched)
        new_tx = (
            tx.tx.as_advanced_builder()
            .set_outputs(outputs)
            .set_outputs_data(outputs_data)
            .build()
        )
        return tx.with_tx(new_tx)
