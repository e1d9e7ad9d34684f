# server/services/game_service.py
"""Core game logic and state management."""

import logging
import random
from typing import Dict, Iterable, List, Optional

from models.entities import GLIDING, Chunk, PlayerState, Vector3
from config.settings import (
    BERRY_VITALITY,
    CHUNK_HEIGHT,
    HORIZONTAL_RANGE,
    KISS_DISTANCE,
    MAX_VITALITY,
    VISIBILITY_RANGE,
    VITALITY_DECAY,
)
from services.world_generator import chunk_id_for, generate_chunk
from utils.helpers import (
    band_base_height,
    calculate_distance,
    clamp,
    horizontal_distance,
)

logger = logging.getLogger(__name__)


class GameService:
    """
    Authoritative store of players and generated chunks for one session.

    Every mutation goes through the methods below. Nothing here blocks or
    awaits, so each call runs to completion before the event loop serves
    the next message.
    """

    def __init__(self, rng=random):
        self.players: Dict[str, PlayerState] = {}
        self.chunks: Dict[str, Chunk] = {}  # Grow-only, one per base height
        self._rng = rng

    # Player lifecycle
    def add_player(self, player_id: str) -> PlayerState:
        """Create a player at spawn, replacing any existing state for that id."""
        player = PlayerState(id=player_id)
        self.players[player_id] = player
        logger.info("Player %s spawned", player_id)
        return player

    def get_player(self, player_id: str) -> Optional[PlayerState]:
        """Current state of a player, or None if not connected."""
        return self.players.get(player_id)

    def remove_player(self, player_id: str):
        """Remove a player. Unknown ids are ignored."""
        if self.players.pop(player_id, None) is not None:
            logger.info("Player %s removed", player_id)

    def update_player_state(
        self,
        player_id: str,
        position: Vector3,
        velocity: Vector3,
        state: str,
    ) -> bool:
        """
        Apply a movement report from a player.

        Score and vitality change per call, not per unit of time: clients are
        expected to report roughly every 100ms. Returns True when the update
        ended the player's run and respawned them.
        """
        player = self.players.get(player_id)
        if not player:
            return False

        player.position = position
        player.velocity = velocity
        player.state = state

        if state == GLIDING:
            player.score += 1

        # Rounded so repeated decay lands exactly on zero
        player.vitality = clamp(round(player.vitality - VITALITY_DECAY, 4), 0, MAX_VITALITY)

        # Touching the ground costs a baby
        if position.y <= 0 and player.babies > 0:
            player.babies -= 1

        if player.vitality <= 0 and player.babies == 0:
            self._respawn(player)
            return True

        return False

    def _respawn(self, player: PlayerState):
        """Send a player back to spawn. Score is kept."""
        player.position = Vector3.spawn()
        player.velocity = Vector3()
        player.vitality = MAX_VITALITY
        logger.info("Player %s ran out of vitality and respawned", player.id)

    # Visibility and streaming
    def get_chunks_for_player(self, position: Vector3) -> List[Chunk]:
        """Chunks below, at and above the band containing position."""
        center = band_base_height(position.y, CHUNK_HEIGHT)
        chunks = []

        for base_height in (center - CHUNK_HEIGHT, center, center + CHUNK_HEIGHT):
            # Nothing below ground
            if base_height < 0:
                continue
            chunks.append(self._get_or_create_chunk(base_height))

        return chunks

    def _get_or_create_chunk(self, base_height: int) -> Chunk:
        chunk_id = chunk_id_for(base_height)
        chunk = self.chunks.get(chunk_id)
        if chunk is None:
            chunk = generate_chunk(base_height, self._rng)
            self.chunks[chunk_id] = chunk
            logger.debug(
                "Generated %s with %d berries", chunk_id, len(chunk.berries)
            )
        return chunk

    def mark_chunks_loaded(self, player_id: str, chunks: Iterable[Chunk]) -> List[Chunk]:
        """Record chunks as delivered, returning only those the player lacked."""
        player = self.players.get(player_id)
        if not player:
            return []

        new_chunks = [chunk for chunk in chunks if chunk.id not in player.loadedChunks]
        player.loadedChunks.update(chunk.id for chunk in new_chunks)
        return new_chunks

    def get_nearby_players(self, player_id: str) -> List[PlayerState]:
        """Other players within vertical visibility range and horizontal radius."""
        player = self.players.get(player_id)
        if not player:
            return []

        return [
            other
            for other in self.players.values()
            if other.id != player_id
            and abs(player.position.y - other.position.y) < VISIBILITY_RANGE
            and horizontal_distance(player.position, other.position) < HORIZONTAL_RANGE
        ]

    # Interactions
    def collect_berry(self, player_id: str, chunk_id: str, berry_id: str) -> bool:
        """
        Collect a berry for a player.

        The berry is consumed even if the player disconnected in the meantime,
        in which case the call still reports failure.
        """
        chunk = self.chunks.get(chunk_id)
        if not chunk:
            return False

        berry = next((b for b in chunk.berries if b.id == berry_id), None)
        if not berry or berry.collected:
            return False

        berry.collected = True

        player = self.players.get(player_id)
        if not player:
            return False

        player.vitality = clamp(player.vitality + BERRY_VITALITY, 0, MAX_VITALITY)
        logger.info("Player %s collected berry %s in %s", player_id, berry_id, chunk_id)
        return True

    def process_kiss(self, player1_id: str, player2_id: str) -> bool:
        """Give two distinct players a baby each if they are close enough to kiss."""
        if player1_id == player2_id:
            return False

        player1 = self.players.get(player1_id)
        player2 = self.players.get(player2_id)
        if not player1 or not player2:
            return False

        if calculate_distance(player1.position, player2.position) > KISS_DISTANCE:
            return False

        player1.babies += 1
        player2.babies += 1
        logger.info("Players %s and %s had a baby", player1_id, player2_id)
        return True

    # Getter methods for game state
    def get_all_players(self) -> List[dict]:
        """Get all players as dictionaries."""
        return [player.to_dict() for player in self.players.values()]

    def get_all_chunks(self) -> List[dict]:
        """Get all generated chunks as dictionaries."""
        return [chunk.to_dict() for chunk in self.chunks.values()]

    def count_remaining_berries(self) -> int:
        """Number of uncollected berries across generated chunks."""
        return sum(
            1
            for chunk in self.chunks.values()
            for berry in chunk.berries
            if not berry.collected
        )
