"""
Tests for the Contract class.
"""

import pytest
from trampoline_contract.contract import (
    Chain, Contract, ContractCellFieldSelector, ContractSource, Immediate, LocalPath
)
from trampoline_contract.generator import (
    CellMetaTransaction, CellQuery, CellQueryAttribute, CellQueryRegistry, QueryStatement
)
from trampoline_contract.schema import Uint8, Uint64
from trampoline_transaction.transaction import TransactionBuilder
from trampoline_types.cell import CellDep, CellOutput, DepType, OutPoint, capacity_bytes
from trampoline_types.errors import OutputRuleError, SchemaDecodeError, UnresolvedReference, VerificationError
from trampoline_types.hashing import calc_data_hash
from trampoline_types.script import Script, ScriptHashType

CODE = b"counter contract code"

@pytest.fixture
def contract():
    """Create a contract with Uint8 args and Uint64 data."""
    return Contract(Uint8, Uint64, code=CODE)

@pytest.fixture
def other_lock():
    """Create a lock script no contract here matches."""
    return Script(calc_data_hash(b"other lock"), ScriptHashType.DATA1, b"")

def state_with_outputs(*outputs):
    builder = TransactionBuilder()
    for output, data in outputs:
        builder.output_with_data(output, data)
    return CellMetaTransaction(builder.build())

def test_as_script(contract):
    """Test the reference script is content addressed with the current args."""
    script = contract.as_script()
    assert script.code_hash == calc_data_hash(CODE)
    assert script.hash_type == ScriptHashType.DATA1
    assert script.args == b"\x00"
    assert contract.script_hash() == script.calc_script_hash()

    contract.set_args(Uint8(7))
    assert contract.as_script().args == b"\x07"

def test_without_code():
    """Test a contract without code has no script."""
    contract = Contract(Uint8, Uint64)
    assert contract.data_hash() is None
    assert contract.as_script() is None
    assert contract.script_hash() is None
    assert contract.as_code_cell() == (CellOutput(capacity=0), b"")

def test_as_code_cell(contract, other_lock):
    """Test the code cell holds the code under the configured scripts."""
    output, data = contract.lock(other_lock).type_(other_lock).as_code_cell()
    assert data == CODE
    assert output.capacity == capacity_bytes(len(CODE))
    assert output.lock == other_lock
    assert output.type_ == other_lock

def test_as_cell_dep(contract):
    out_point = OutPoint(b"\x01" * 32, 3)
    assert contract.as_cell_dep(out_point) == CellDep(out_point, DepType.CODE)

def test_sources(tmp_path, chain):
    """Test code loads from each kind of source."""
    path = tmp_path / "contract.bin"
    path.write_bytes(b"code from disk")
    assert Contract(Uint8, Uint8, source=LocalPath(str(path))).code == b"code from disk"
    assert Contract(Uint8, Uint8, source=Immediate(b"immediate code")).code == b"immediate code"

    out_point = chain.deploy_cell_with_data(b"code on chain")
    contract = Contract(Uint8, Uint8, source=Chain(out_point))
    assert contract.code is None
    assert contract.load_code(chain.store) == b"code on chain"
    assert contract.data_hash() == calc_data_hash(b"code on chain")

def test_chain_source_missing(chain):
    """Test loading from an unknown cell fails."""
    contract = Contract(Uint8, Uint8, source=Chain(OutPoint(b"\x0e" * 32, 0)))
    with pytest.raises(UnresolvedReference):
        contract.load_code(chain.store)

def test_typed_state(contract):
    """Test typed and raw setters and readers."""
    contract.set_data(Uint64(9))
    assert contract.read_data() == Uint64(9)
    contract.set_raw_data("0x0a00000000000000")
    assert contract.read_data() == Uint64(10)
    contract.set_raw_args("0x03")
    assert contract.read_args() == Uint8(3)
    assert contract.read_raw_data(Uint64(11).to_bytes()) == Uint64(11)
    assert contract.read_raw_args(b"\x04") == Uint8(4)

    with pytest.raises(ValueError):
        contract.set_data(Uint8(1))

def test_pipe_keeps_unmatched_outputs(contract, other_lock):
    """Test only matching outputs are rewritten, in place."""
    contract.add_output_rule(ContractCellFieldSelector.DATA, lambda data: Uint64(data.value + 1))
    state = state_with_outputs(
        (CellOutput(capacity=1, lock=other_lock), b"first"),
        (CellOutput(capacity=2, lock=contract.as_script()), Uint64(5).to_bytes()),
        (CellOutput(capacity=3, lock=other_lock), b"third"),
    )

    tx = contract.pipe(state, CellQueryRegistry()).tx
    assert list(tx.outputs_data) == [b"first", Uint64(6).to_bytes(), b"third"]
    assert [output.capacity for output in tx.outputs] == [1, 2, 3]

def test_pipe_matches_type_scripts(contract, other_lock):
    """Test outputs carrying the script as type match too."""
    contract.add_output_rule(ContractCellFieldSelector.DATA, lambda data: Uint64(data.value * 2))
    state = state_with_outputs(
        (CellOutput(capacity=1, lock=other_lock, type_=contract.as_script()), Uint64(4).to_bytes()),
    )
    assert contract.pipe(state, CellQueryRegistry()).tx.outputs_data[0] == Uint64(8).to_bytes()

def test_rules_fold_in_order(contract):
    """Test rules apply in registration order."""
    contract.add_output_rule(ContractCellFieldSelector.DATA, lambda data: Uint64(data.value + 1))
    contract.add_output_rule(ContractCellFieldSelector.DATA, lambda data: Uint64(data.value * 10))
    state = state_with_outputs((CellOutput(capacity=1, lock=contract.as_script()), Uint64(1).to_bytes()))
    assert contract.pipe(state, CellQueryRegistry()).tx.outputs_data[0] == Uint64(20).to_bytes()

def test_field_rules(contract, other_lock):
    """Test capacity, script and args rules."""
    script = contract.as_script()
    contract.add_output_rule(ContractCellFieldSelector.CAPACITY, lambda capacity: capacity + 100)
    contract.add_output_rule(ContractCellFieldSelector.ARGS, lambda args: Uint8(args.value + 1))
    contract.add_output_rule(ContractCellFieldSelector.LOCK_SCRIPT, lambda lock: other_lock)
    state = state_with_outputs((CellOutput(capacity=1, lock=other_lock, type_=script), Uint64(0).to_bytes()))

    output = contract.pipe(state, CellQueryRegistry()).tx.outputs[0]
    assert output.capacity == 101
    assert output.type_ == script.with_args(b"\x01")
    assert output.lock == other_lock

def test_type_script_rule_can_remove(contract, other_lock):
    """Test a type script rule may drop the type script."""
    contract.add_output_rule(ContractCellFieldSelector.TYPE_SCRIPT, lambda type_script: None)
    state = state_with_outputs(
        (CellOutput(capacity=1, lock=other_lock, type_=contract.as_script()), Uint64(0).to_bytes()),
    )
    assert contract.pipe(state, CellQueryRegistry()).tx.outputs[0].type_ is None

def test_rule_wrong_type(contract):
    """Test a rule returning an unusable value aborts the pass."""
    contract.add_output_rule(ContractCellFieldSelector.DATA, lambda data: 6)
    state = state_with_outputs((CellOutput(capacity=1, lock=contract.as_script()), Uint64(5).to_bytes()))
    with pytest.raises(OutputRuleError):
        contract.pipe(state, CellQueryRegistry())

    contract.output_rules.clear()
    contract.add_output_rule(ContractCellFieldSelector.CAPACITY, lambda capacity: "lots")
    with pytest.raises(OutputRuleError):
        contract.pipe(state, CellQueryRegistry())

def test_undecodable_data(contract):
    """Test matched outputs with malformed data abort the pass."""
    contract.add_output_rule(ContractCellFieldSelector.DATA, lambda data: data)
    state = state_with_outputs((CellOutput(capacity=1, lock=contract.as_script()), b"\x01"))
    with pytest.raises(SchemaDecodeError):
        contract.pipe(state, CellQueryRegistry())

def test_input_rules(contract):
    """Test input rules register one query each, in order."""
    first = CellQuery(QueryStatement.single(CellQueryAttribute.lock_hash(b"\x01" * 32)), 1)
    second = CellQuery(QueryStatement.single(CellQueryAttribute.type_hash(b"\x02" * 32)), 1)
    contract.add_input_rule(lambda tx: first)
    contract.add_input_rule(lambda tx: second)

    registry = CellQueryRegistry()
    contract.update_query_register(CellMetaTransaction(TransactionBuilder().build()), registry)
    assert registry.drain() == [first, second]

def test_pipe_keeps_data_count(contract, chain):
    """Test outputs missing data are not padded, so verification still sees the mismatch."""
    contract.add_output_rule(ContractCellFieldSelector.DATA, lambda data: Uint64(data.value + 1))
    base = (
        TransactionBuilder()
        .output_with_data(CellOutput(capacity=1, lock=contract.as_script()), Uint64(5).to_bytes())
        .output(CellOutput(capacity=2, lock=contract.as_script()))
        .build()
    )

    tx = contract.pipe(CellMetaTransaction(base), CellQueryRegistry()).tx
    assert len(tx.outputs) == 2
    assert list(tx.outputs_data) == [Uint64(6).to_bytes()]
    with pytest.raises(VerificationError, match="length mismatch"):
        chain.verify_tx_consensus(tx)

def test_sources_are_abstract():
    """Test the code source base cannot be used directly."""
    with pytest.raises(TypeError):
        ContractSource()
