"""
Trampoline - Chain Module

This module implements the in-memory mock chain for Trampoline: block
headers, the script verification gateway, the MockChain ledger facade, its
provider adapter for the generator pipeline and genesis bootstrap.
"""

from .config import CONFIG, ChainConfig
from .block import Block, EpochNumberWithFraction, Header, merkle_root
from .verifier import (
    ALWAYS_SUCCESS, ALWAYS_SUCCESS_CODE_HASH, Consensus, Message, ScriptContext,
    ScriptGroup, ScriptVerifier, SimulatedVerifier, TxVerifyEnv
)
from .provider import MockChainTxProvider
from .mock_chain import MockChain
from .genesis import GenesisInfo, GenesisScripts, genesis_block_from_chain, genesis_event

__all__ = [
    'CONFIG', 'ChainConfig',
    'Block', 'EpochNumberWithFraction', 'Header', 'merkle_root',
    'ALWAYS_SUCCESS', 'ALWAYS_SUCCESS_CODE_HASH', 'Consensus', 'Message',
    'ScriptContext', 'ScriptGroup', 'ScriptVerifier', 'SimulatedVerifier', 'TxVerifyEnv',
    'MockChainTxProvider',
    'MockChain',
    'GenesisInfo', 'GenesisScripts', 'genesis_block_from_chain', 'genesis_event',
]
