"""
Error taxonomy for Trampoline.

Lookup misses are never errors: stores and indices return None or an empty
list. Every other failure aborts the current operation with one of the
exceptions below.
"""

from typing import Any, Optional


class TrampolineError(ValueError):
    """Base class for all ledger and pipeline errors."""


class UnresolvedReference(TrampolineError):
    """
    A transaction refers to a cell (or a code hash) the store does not hold.

    Attributes:
        reference: The missing OutPoint, or the missing code hash
    """

    def __init__(self, reference: Any, message: Optional[str] = None):
        self.reference = reference
        super().__init__(message or f"Unresolved reference: {reference!r}")


class QueryUnsatisfied(TrampolineError):
    """A registered cell query found no matching cells during a generation pass."""

    def __init__(self, query: Any):
        self.query = query
        super().__init__(f"Query unsatisfied: {query!r}")


class SchemaDecodeError(TrampolineError):
    """Raw bytes do not have the shape a schema type expects."""

    def __init__(self, schema: str, reason: str):
        self.schema = schema
        self.reason = reason
        super().__init__(f"Cannot decode {schema}: {reason}")


class VerificationError(TrampolineError):
    """
    The verifier rejected a resolved transaction.

    Attributes:
        reason (str): Human-readable reason
        script_hash (Optional[bytes]): Script group that failed, if known
    """

    def __init__(self, reason: str, script_hash: Optional[bytes] = None):
        self.reason = reason
        self.script_hash = script_hash
        if script_hash is not None:
            super().__init__(f"Verification failed for script 0x{script_hash.hex()}: {reason}")
        else:
            super().__init__(f"Verification failed: {reason}")


class UnsupportedScriptAddressing(TrampolineError):
    """Only content-hash addressed scripts can be built or located."""

    def __init__(self, hash_type: Any):
        self.hash_type = hash_type
        super().__init__(f"Hash type {hash_type!r} is not supported by the mock chain")


class OutputRuleError(TrampolineError):
    """An output rule returned a value the selected field cannot hold."""

    def __init__(self, selector: Any, value: Any):
        self.selector = selector
        self.value = value
        super().__init__(f"Output rule for {selector!r} returned unusable value {value!r}")
