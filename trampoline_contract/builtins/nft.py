"""
Trampoline NFT contract template.

An NFT cell's data pairs the genesis id fixed at minting with the id of the
content it represents.
"""

from typing import Optional

from ..contract import Contract, ContractSource
from ..schema import Byte32, Bytes, SchemaStruct

GenesisId = Byte32
ContentId = Byte32


class TrampolineNFT(SchemaStruct):
    FIELDS = [
        ("genesis_id", GenesisId),
        ("cid", ContentId),
    ]


class NftContract(Contract):
    """Contract with Bytes args and TrampolineNFT data."""

    def __init__(self, source: Optional[ContractSource] = None, code: Optional[bytes] = None):
        super().__init__(Bytes, TrampolineNFT, source=source, code=code)
