"""
Implementation of the ScriptBuilder class for Trampoline.

Derives script descriptors from deployed code cells. Only content-hash
addressed scripts are built: the mock chain has no type-id cells, so a
type-addressed script could never be located again.
"""

from typing import Any, Optional

from trampoline_types.cell import OutPoint
from trampoline_types.errors import UnsupportedScriptAddressing
from trampoline_types.hashing import calc_data_hash
from trampoline_types.script import Script, ScriptHashType


class ScriptBuilder:
    """Builds scripts whose code hash is the content hash of a deployed cell."""

    def __init__(self, store: Any):
        self.store = store

    def build(
        self,
        code_out_point: OutPoint,
        hash_type: ScriptHashType = ScriptHashType.DATA1,
        args: bytes = b""
    ) -> Optional[Script]:
        """
        Build a script pointing at the code deployed at code_out_point.

        Args:
            code_out_point: Reference of the cell holding the code
            hash_type: DATA or DATA1
            args: Script arguments

        Returns:
            Script, or None if no cell exists at code_out_point

        Raises:
            UnsupportedScriptAddressing: If hash_type is TYPE
        """
        hash_type = ScriptHashType(hash_type)
        if not hash_type.is_content_addressed():
            raise UnsupportedScriptAddressing(hash_type)

        cell = self.store.get(code_out_point)
        if cell is None:
            return None
        _, code = cell
        return Script(code_hash=calc_data_hash(code), hash_type=hash_type, args=args)

    def build_with_hash_type(self, code_out_point: OutPoint, hash_type: ScriptHashType, args: bytes) -> Optional[Script]:
        return self.build(code_out_point, hash_type, args)
