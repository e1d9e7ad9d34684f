# server/models/entities.py
"""Game entity models and data classes."""

from dataclasses import asdict, dataclass, field
from typing import List, Set

from config.settings import MAX_VITALITY, SPAWN_POSITION

GLIDING = "gliding"
CLIMBING = "climbing"
IDLE = "idle"


@dataclass
class Vector3:
    """A point or direction in world space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def spawn(cls) -> "Vector3":
        return cls(*SPAWN_POSITION)


@dataclass
class SubBranch:
    """A limb growing out of a branch, placed relative to its parent."""

    relativePosition: float  # Position along parent (0-1)
    length: float
    angle: float  # Angle relative to parent branch
    elevation: float
    thickness: float
    hasLeaves: bool
    leafDensity: float


@dataclass
class Branch:
    """A generated tree limb. Immutable once its chunk is created."""

    id: str
    position: Vector3
    length: float
    thickness: float
    orientation: float  # Rotation around the trunk, radians
    elevation: float  # Tilt from horizontal, radians
    hasLeaves: bool
    leafDensity: float
    children: List[SubBranch] = field(default_factory=list)


@dataclass
class Berry:
    """A collectible berry hanging from a branch."""

    id: str
    branchId: str
    position: Vector3
    collected: bool = False


@dataclass
class Chunk:
    """A horizontal slab of world content keyed by its base height."""

    id: str
    baseHeight: int
    branches: List[Branch]
    berries: List[Berry]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PlayerState:
    """Authoritative state of a connected player."""

    id: str
    position: Vector3 = field(default_factory=Vector3.spawn)
    velocity: Vector3 = field(default_factory=Vector3)
    state: str = IDLE
    vitality: float = MAX_VITALITY
    score: int = 0
    babies: int = 0
    loadedChunks: Set[str] = field(default_factory=set)  # Chunk ids already sent

    def to_dict(self) -> dict:
        """Public view of the player, without streaming bookkeeping."""
        return {
            "id": self.id,
            "position": asdict(self.position),
            "velocity": asdict(self.velocity),
            "state": self.state,
            "vitality": self.vitality,
            "score": self.score,
            "babies": self.babies,
        }

    def to_position_update(self) -> dict:
        """Minimal view sent to nearby players on every movement tick."""
        return {
            "id": self.id,
            "position": asdict(self.position),
            "velocity": asdict(self.velocity),
            "state": self.state,
            "babies": self.babies,
        }
