"""
Trampoline - Cell Module

This module implements the in-memory cell ledger for Trampoline: a primary
store of cells keyed by reference, content-addressed idempotent deployment
and secondary indices by data hash, lock hash and type hash.
"""

from .indexer import CellIndexer
from .store import CellStore, random_out_point

__all__ = ['CellIndexer', 'CellStore', 'random_out_point']
