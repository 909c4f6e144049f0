from dataclasses import dataclass


@dataclass(frozen=True)
class ChainConfig:
    # Cycle budget for verify_tx / receive_tx when the caller gives none.
    max_cycles: int = 5_000_000
    # Epoch from which DATA1 scripts (VM version selection) are accepted.
    vm_selection_epoch: int = 200
    # Epoch the default verification context commits transactions at.
    default_verify_epoch: int = 300
    # Capacity (in CKB) of the default-lock filler cell in the genesis block.
    genesis_filler_capacity: int = 100_000
    # Cycles charged by the simulated always-success script.
    always_success_cycles: int = 1_000
    contract_debug_prefix: str = "[contract debug]"


CONFIG = ChainConfig()
