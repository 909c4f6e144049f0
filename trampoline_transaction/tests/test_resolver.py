"""
Tests for the TransactionResolver and ScriptBuilder classes.
"""

import pytest
from trampoline_cell.store import CellStore
from trampoline_transaction.resolver import TransactionResolver
from trampoline_transaction.script_builder import ScriptBuilder
from trampoline_transaction.transaction import TransactionBuilder
from trampoline_types.cell import CellDep, CellInput, CellOutput, DepType, OutPoint, capacity_bytes
from trampoline_types.errors import UnresolvedReference, UnsupportedScriptAddressing
from trampoline_types.hashing import calc_data_hash
from trampoline_types.script import Script, ScriptHashType

class FakeHeader:
    def __init__(self, block_hash):
        self.number = 7
        self.epoch = 1
        self._hash = block_hash

    def hash(self):
        return self._hash

@pytest.fixture
def store():
    """Create a fresh CellStore instance for each test."""
    return CellStore()

@pytest.fixture
def resolver(store):
    return TransactionResolver(store)

@pytest.fixture
def builder(store):
    return ScriptBuilder(store)

@pytest.fixture
def lock_code(store):
    """Deploy lock code and return its reference."""
    return store.deploy_with_data(b"lock code blob")

@pytest.fixture
def type_code(store):
    """Deploy type code and return its reference."""
    return store.deploy_with_data(b"type code blob")

def test_build_script(builder, lock_code):
    """Test scripts point at the content hash of the code cell."""
    script = builder.build(lock_code, ScriptHashType.DATA1, b"\x01")
    assert script.code_hash == calc_data_hash(b"lock code blob")
    assert script.hash_type == ScriptHashType.DATA1
    assert script.args == b"\x01"
    assert builder.build_with_hash_type(lock_code, ScriptHashType.DATA, b"").hash_type == ScriptHashType.DATA

def test_build_script_missing_code(builder):
    """Test a missing code cell yields None."""
    assert builder.build(OutPoint(b"\x0f" * 32, 0)) is None

def test_build_script_rejects_type_addressing(builder, lock_code):
    """Test the content-hash-only restriction is surfaced."""
    with pytest.raises(UnsupportedScriptAddressing):
        builder.build(lock_code, ScriptHashType.TYPE, b"")

def test_resolve_success(store, resolver, builder, lock_code):
    """Test every input and dep is materialized in order."""
    lock = builder.build(lock_code)
    first = store.create_cell(CellOutput(capacity=capacity_bytes(100), lock=lock), b"one")
    second = store.create_cell(CellOutput(capacity=capacity_bytes(200), lock=lock), b"two")
    tx = (
        TransactionBuilder()
        .input(CellInput(first))
        .input(CellInput(second))
        .cell_dep(CellDep(lock_code))
        .build()
    )

    resolved = resolver.resolve(tx)
    assert [cell.out_point for cell in resolved.resolved_inputs] == [first, second]
    assert [cell.data for cell in resolved.resolved_inputs] == [b"one", b"two"]
    assert resolved.resolved_cell_deps[0].data == b"lock code blob"
    assert resolved.transaction is tx

def test_resolve_names_first_missing_input(store, resolver):
    """Test resolution fails closed on the first miss in input order."""
    present = store.create_cell(CellOutput(capacity=1), b"")
    missing_a = OutPoint(b"\x0a" * 32, 0)
    missing_b = OutPoint(b"\x0b" * 32, 0)
    tx = (
        TransactionBuilder()
        .input(CellInput(present))
        .input(CellInput(missing_a))
        .input(CellInput(missing_b))
        .build()
    )
    with pytest.raises(UnresolvedReference) as exc_info:
        resolver.resolve(tx)
    assert exc_info.value.reference == missing_a

def test_resolve_missing_dep(store, resolver):
    """Test missing cell deps fail resolution too."""
    missing = OutPoint(b"\x0c" * 32, 1)
    tx = TransactionBuilder().cell_dep(CellDep(missing)).build()
    with pytest.raises(UnresolvedReference) as exc_info:
        resolver.resolve(tx)
    assert exc_info.value.reference == missing

def test_resolve_attaches_location(store, resolver, lock_code):
    """Test linked cells carry their location record."""
    header = FakeHeader(b"\x0d" * 32)
    store.insert_header(header)
    store.link(lock_code, header.hash(), 2)
    tx = TransactionBuilder().cell_dep(CellDep(lock_code)).build()

    info = resolver.resolve(tx).resolved_cell_deps[0].transaction_info
    assert info.block_number == 7
    assert info.index == 2

def test_complete_dependencies_for_inputs_and_outputs(store, resolver, builder, lock_code, type_code):
    """Test code deps are derived for input and output scripts."""
    lock = builder.build(lock_code)
    type_script = builder.build(type_code)
    spent = store.create_cell(CellOutput(capacity=capacity_bytes(100), lock=lock), b"")
    tx = (
        TransactionBuilder()
        .input(CellInput(spent))
        .output_with_data(CellOutput(capacity=capacity_bytes(100), lock=lock, type_=type_script), b"")
        .build()
    )

    completed = resolver.complete_dependencies(tx)
    assert [dep.out_point for dep in completed.cell_deps] == [lock_code, type_code]
    assert all(dep.dep_type == DepType.CODE for dep in completed.cell_deps)

def test_complete_dependencies_keeps_explicit_deps(store, resolver, builder, lock_code):
    """Test explicit deps are kept first and never duplicated."""
    lock = builder.build(lock_code)
    extra = store.deploy_with_data(b"some extra dependency")
    tx = (
        TransactionBuilder()
        .cell_dep(CellDep(extra))
        .cell_dep(CellDep(lock_code))
        .output_with_data(CellOutput(capacity=capacity_bytes(100), lock=lock), b"")
        .output_with_data(CellOutput(capacity=capacity_bytes(100), lock=lock), b"")
        .build()
    )

    completed = resolver.complete_dependencies(tx)
    assert [dep.out_point for dep in completed.cell_deps] == [extra, lock_code]

    # Completing twice changes nothing
    assert resolver.complete_dependencies(completed).cell_deps == completed.cell_deps

def test_complete_dependencies_missing_code(store, resolver):
    """Test required script code that is not deployed fails closed."""
    unknown = Script(calc_data_hash(b"never deployed"), ScriptHashType.DATA1, b"")
    tx = TransactionBuilder().output_with_data(CellOutput(capacity=1, type_=unknown), b"").build()
    with pytest.raises(UnresolvedReference) as exc_info:
        resolver.complete_dependencies(tx)
    assert exc_info.value.reference == unknown.code_hash

def test_complete_dependencies_skips_unknown_output_locks(resolver):
    """Test output locks without deployed code add nothing."""
    unknown = Script(calc_data_hash(b"never deployed"), ScriptHashType.DATA1, b"")
    tx = TransactionBuilder().output_with_data(CellOutput(capacity=1, lock=unknown), b"").build()
    assert resolver.complete_dependencies(tx).cell_deps == ()

def test_complete_dependencies_skips_type_addressed_scripts(resolver):
    """Test identity-addressed scripts are not located."""
    type_id = Script(b"\x11" * 32, ScriptHashType.TYPE, b"")
    tx = TransactionBuilder().output_with_data(CellOutput(capacity=1, type_=type_id), b"").build()
    assert resolver.complete_dependencies(tx).cell_deps == ()
