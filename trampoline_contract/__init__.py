"""
Trampoline - Contract Module

This module implements the transaction generator pipeline for Trampoline:
cell queries and their registry, the provider and middleware interfaces, the
Generator, typed schemas and the Contract middleware.
"""

from .generator import (
    AttributeKind, CellMetaTransaction, CellQuery, CellQueryAttribute,
    CellQueryRegistry, Generator, GeneratorMiddleware, QueryProvider,
    QueryStatement, StatementKind, TransactionProvider
)
from .schema import (
    Byte32, Bytes, SchemaPrimitiveType, SchemaStruct, SchemaType,
    Uint8, Uint32, Uint64, Uint128
)
from .contract import (
    Chain, Contract, ContractCellFieldSelector, ContractSource, Immediate, LocalPath
)

__all__ = [
    'AttributeKind', 'CellMetaTransaction', 'CellQuery', 'CellQueryAttribute',
    'CellQueryRegistry', 'Generator', 'GeneratorMiddleware', 'QueryProvider',
    'QueryStatement', 'StatementKind', 'TransactionProvider',
    'Byte32', 'Bytes', 'SchemaPrimitiveType', 'SchemaStruct', 'SchemaType',
    'Uint8', 'Uint32', 'Uint64', 'Uint128',
    'Chain', 'Contract', 'ContractCellFieldSelector', 'ContractSource', 'Immediate', 'LocalPath',
]
