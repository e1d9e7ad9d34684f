# server/services/world_generator.py
"""Procedural generation of branches and berries for world chunks."""

import math
import random
import uuid
from typing import List

from models.entities import Berry, Branch, Chunk, SubBranch, Vector3
from config.settings import BERRIES_PER_CHUNK, BRANCH_SPAWN_HEIGHTS


def chunk_id_for(base_height: int) -> str:
    """Deterministic chunk id for a base height."""
    return f"chunk-{base_height}"


def generate_branch(y: float, rng=random) -> Branch:
    """Generate a branch at a specific height."""
    branch = Branch(
        id=str(uuid.uuid4()),
        position=Vector3(x=rng.uniform(-15, 15), y=y, z=rng.uniform(-15, 15)),
        length=rng.uniform(5, 10),
        thickness=max(0.3, 1 - y / 1000),  # Thinner as we go higher
        orientation=rng.uniform(0, math.pi * 2),
        elevation=rng.uniform(-0.1, 0.2),
        hasLeaves=rng.random() < 0.3 + y / 1000,  # More leaves higher up
        leafDensity=rng.uniform(0.3, 1.0),
    )

    split_chance = 0.3 + y / 2000
    if rng.random() < split_chance:
        num_splits = min(3, math.floor(rng.uniform(1, 4)))
        for _ in range(num_splits):
            branch.children.append(_generate_sub_branch(branch, rng))
    elif rng.random() < 0.7:
        # Terminal branches are usually leafy
        branch.hasLeaves = True
        branch.leafDensity = rng.uniform(0.7, 1.0)

    return branch


def _generate_sub_branch(parent: Branch, rng) -> SubBranch:
    side = 1 if rng.random() > 0.5 else -1
    return SubBranch(
        relativePosition=rng.uniform(0.4, 0.8),
        length=parent.length * rng.uniform(0.4, 0.8),
        angle=rng.uniform(math.pi / 12, math.pi / 4) * side,
        elevation=rng.uniform(-0.1, 0.3),
        thickness=parent.thickness * rng.uniform(0.4, 0.7),
        hasLeaves=rng.random() < 0.8,
        leafDensity=rng.uniform(0.5, 1.0),
    )


def berry_position(branch: Branch, relative_pos: float) -> Vector3:
    """Point at relative_pos (0-1) along a branch's direction from its base."""
    reach = branch.length * relative_pos
    return Vector3(
        x=branch.position.x + math.cos(branch.orientation) * reach,
        y=branch.position.y + branch.elevation * reach,
        z=branch.position.z + math.sin(branch.orientation) * reach,
    )


def generate_berries(branches: List[Branch], rng=random) -> List[Berry]:
    """Place one to BERRIES_PER_CHUNK berries on distinct branches."""
    num_berries = math.floor(rng.uniform(1, BERRIES_PER_CHUNK + 1))
    num_berries = min(num_berries, BERRIES_PER_CHUNK, len(branches))

    # Insertion order keeps berry placement stable for a given rng
    branch_indices = {}
    while len(branch_indices) < num_berries:
        branch_indices[math.floor(rng.random() * len(branches))] = None

    berries = []
    for index in branch_indices:
        branch = branches[index]
        berries.append(
            Berry(
                id=str(uuid.uuid4()),
                branchId=branch.id,
                position=berry_position(branch, rng.uniform(0.3, 0.9)),
            )
        )
    return berries


def generate_chunk(base_height: int, rng=random) -> Chunk:
    """
    Generate the chunk starting at base_height.

    Uses ambient randomness: generating the same height twice gives different
    content, so callers must cache the result. base_height must not be
    negative.
    """
    branches = [
        generate_branch(base_height + offset, rng) for offset in BRANCH_SPAWN_HEIGHTS
    ]
    berries = generate_berries(branches, rng)

    return Chunk(
        id=chunk_id_for(base_height),
        baseHeight=base_height,
        branches=branches,
        berries=berries,
    )
