"""
Trampoline - Transaction Module

This module implements the transaction model for Trampoline: immutable
transactions and their builder, resolution against a cell store, code
dependency completion and script construction from deployed code.
"""

from .transaction import Transaction, TransactionBuilder
from .resolver import ResolvedTransaction, TransactionResolver
from .script_builder import ScriptBuilder

__all__ = [
    'Transaction', 'TransactionBuilder',
    'ResolvedTransaction', 'TransactionResolver',
    'ScriptBuilder',
]
