"""
Tests for the built-in sUDT and NFT contract templates.
"""

import pytest
from trampoline_contract.builtins import (
    ContentId, GenesisId, NftContract, OwnerLockHash, SudtAmount, SudtContract, TrampolineNFT
)
from trampoline_contract.contract import ContractCellFieldSelector
from trampoline_contract.generator import CellQuery, CellQueryAttribute, Generator, QueryStatement
from trampoline_transaction.transaction import TransactionBuilder
from trampoline_types.cell import CellOutput, OutPoint, capacity_bytes
from trampoline_types.errors import SchemaDecodeError
from trampoline_types.packing import pack_bytes

SUDT_CODE = b"simple udt code"

@pytest.fixture
def sudt(chain):
    """Deploy the sUDT code with a handler accepting every transaction."""
    contract = SudtContract(code=SUDT_CODE)
    chain.deploy_cell(contract.as_code_cell())
    chain.verifier.register_code(SUDT_CODE, lambda ctx: 100)
    return contract

def test_sudt_schemas():
    """Test the sUDT args and data layouts."""
    contract = SudtContract(code=SUDT_CODE)
    assert contract.args_schema is OwnerLockHash
    assert contract.data_schema is SudtAmount
    assert contract.as_script().args == b"\x00" * 32
    assert SudtAmount(1000).to_bytes() == (1000).to_bytes(16, "little")

def test_sudt_mint(chain, sudt):
    """Test minting sUDT to the owner through the full pipeline."""
    owner_lock = chain.default_lock_script(b"owner")
    owner_cell = chain.deploy_random_cell_with_default_lock(1000, b"owner")
    sudt.set_args(OwnerLockHash(owner_lock.calc_script_hash()))
    sudt.add_output_rule(ContractCellFieldSelector.DATA, lambda amount: SudtAmount(amount.value + 1000))
    sudt.add_input_rule(lambda tx: CellQuery(
        QueryStatement.single(CellQueryAttribute.lock_hash(owner_lock.calc_script_hash())), 1
    ))

    token = CellOutput(capacity=capacity_bytes(200), lock=owner_lock, type_=sudt.as_script())
    base = TransactionBuilder().output_with_data(token, SudtAmount(0).to_bytes()).build()
    provider = chain.inner()
    tx = (
        Generator()
        .pipeline([sudt])
        .chain_service(chain)
        .query_service(provider)
        .transaction(base)
        .generate()
    )
    assert tx.input_pts() == [owner_cell]

    tx_hash = provider.send_tx(tx)
    assert tx_hash is not None
    assert chain.get_cells_by_type_hash(sudt.script_hash()) == [OutPoint(tx_hash, 0)]
    _, data = chain.get_cell(OutPoint(tx_hash, 0))
    assert sudt.read_raw_data(data) == SudtAmount(1000)

def test_nft_data_layout():
    """Test NFT data is the genesis id followed by the content id."""
    nft = TrampolineNFT(genesis_id=GenesisId(b"\x01" * 32), cid=ContentId(b"\x02" * 32))
    assert nft.to_bytes() == b"\x01" * 32 + b"\x02" * 32
    assert TrampolineNFT.from_bytes(nft.to_bytes()) == nft
    assert TrampolineNFT.default().to_bytes() == b"\x00" * 64
    with pytest.raises(SchemaDecodeError):
        TrampolineNFT.from_bytes(b"\x01" * 32)

def test_nft_content_rule():
    """Test an NFT rule rewriting the content id."""
    contract = NftContract(code=b"nft code")
    contract.set_raw_args("0x" + pack_bytes(b"series").hex())
    assert contract.as_script().args == pack_bytes(b"series")

    def set_content(nft):
        return TrampolineNFT(genesis_id=nft.genesis_id, cid=ContentId(b"\x03" * 32))

    contract.add_output_rule(ContractCellFieldSelector.DATA, set_content)
    genesis = TrampolineNFT(genesis_id=GenesisId(b"\x01" * 32))
    output = CellOutput(capacity=capacity_bytes(200), type_=contract.as_script())
    tx = (
        Generator()
        .pipeline([contract])
        .transaction(TransactionBuilder().output_with_data(output, genesis.to_bytes()).build())
        .generate()
    )
    assert tx.outputs_data[0] == b"\x01" * 32 + b"\x03" * 32
