"""
Simple user-defined token (sUDT) contract template.

Cells carry the owner's lock hash as type script args and the token amount
as data.
"""

from typing import Optional

from ..contract import Contract, ContractSource
from ..schema import Byte32, Uint128

OwnerLockHash = Byte32
SudtAmount = Uint128


class SudtContract(Contract):
    """Contract with OwnerLockHash args and SudtAmount data."""

    def __init__(self, source: Optional[ContractSource] = None, code: Optional[bytes] = None):
        super().__init__(OwnerLockHash, SudtAmount, source=source, code=code)
