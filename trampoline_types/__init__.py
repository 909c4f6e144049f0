"""
Trampoline - Types Module

This module implements the ledger primitives shared by every other Trampoline
module: content hashing, scripts, cell references, output descriptors and the
error taxonomy.
"""

from .hashing import blake2b_256, calc_data_hash, random_hash, ZERO_HASH
from .script import Script, ScriptHashType
from .cell import (
    ONE_CKB,
    capacity_bytes,
    CellDep,
    CellInput,
    CellMeta,
    CellOutput,
    DepType,
    OutPoint,
    TransactionInfo,
)
from .errors import (
    TrampolineError,
    UnresolvedReference,
    QueryUnsatisfied,
    SchemaDecodeError,
    VerificationError,
    UnsupportedScriptAddressing,
    OutputRuleError,
)

__all__ = [
    'blake2b_256', 'calc_data_hash', 'random_hash', 'ZERO_HASH',
    'Script', 'ScriptHashType',
    'ONE_CKB', 'capacity_bytes', 'CellDep', 'CellInput', 'CellMeta', 'CellOutput',
    'DepType', 'OutPoint', 'TransactionInfo',
    'TrampolineError', 'UnresolvedReference', 'QueryUnsatisfied', 'SchemaDecodeError',
    'VerificationError', 'UnsupportedScriptAddressing', 'OutputRuleError',
]
