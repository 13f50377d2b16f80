from dataclasses import dataclass
from enum import Enum, auto


class CascadePhase(Enum):
    IDLE = auto()
    PROCESSING = auto()


@dataclass(slots=True)
class CascadeState:
    """Tracks the cascade driver; at most one sequence may be processing."""

    phase: CascadePhase = CascadePhase.IDLE
    depth: int = 0
    chain_multiplier: int = 0
    base_chain_multiplier: int = 0
    # Seconds accumulated toward the next paced iteration.
    elapsed: float = 0.0

    @property
    def processing(self) -> bool:
        return self.phase is CascadePhase.PROCESSING
