"""
Trampoline - Built-in Contract Templates
"""

from .sudt import OwnerLockHash, SudtAmount, SudtContract
from .nft import ContentId, GenesisId, NftContract, TrampolineNFT

__all__ = [
    'OwnerLockHash', 'SudtAmount', 'SudtContract',
    'ContentId', 'GenesisId', 'NftContract', 'TrampolineNFT',
]
