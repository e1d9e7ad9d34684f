# server/services/websocket_service.py
"""WebSocket connection management and message handling."""

import json
import logging
import uuid
from dataclasses import asdict
from typing import Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from .game_service import GameService
from config.settings import WELCOME_MESSAGE, get_game_config
from models.messages import (
    AcceptKissMessage,
    CollectBerryMessage,
    InitiateKissMessage,
    PlayerGroundedMessage,
    UpdatePositionMessage,
    parse_client_message,
)
from utils.random import forest_seed

logger = logging.getLogger(__name__)


class WebSocketService:
    """Manages WebSocket connections and message routing."""

    def __init__(self, game_service: GameService, seed: Optional[int] = None):
        self.game_service = game_service
        self.forest_seed = forest_seed() if seed is None else seed
        self.connections: Dict[str, WebSocket] = {}

    async def handle_connection(self, websocket: WebSocket):
        """Handle a WebSocket connection for its whole lifetime."""
        await websocket.accept()
        player_id = str(uuid.uuid4())
        logger.info("Player connected: %s (%s)", player_id, websocket.client)

        try:
            await self.connect(player_id, websocket)
            await self._handle_client_messages(websocket, player_id)
        except WebSocketDisconnect as e:
            logger.debug("Connection %s closed with code %s", player_id, e.code)
        except Exception:
            logger.exception("WebSocket error for player %s", player_id)
        finally:
            await self.disconnect(player_id)

    async def connect(self, player_id: str, websocket: WebSocket):
        """Register a player and send the initial world state."""
        self.connections[player_id] = websocket
        player = self.game_service.add_player(player_id)

        await self._send(
            player_id,
            {
                "type": "gameState",
                "playerId": player_id,
                "forestSeed": self.forest_seed,
                "config": get_game_config(),
                "players": [
                    p for p in self.game_service.get_all_players() if p["id"] != player_id
                ],
            },
        )
        await self._send(player_id, {"type": "message", "text": WELCOME_MESSAGE})
        await self._send(player_id, {"type": "playerJoined", **player.to_dict()})

        chunks = self.game_service.get_chunks_for_player(player.position)
        new_chunks = self.game_service.mark_chunks_loaded(player_id, chunks)
        await self._send(
            player_id,
            {"type": "chunkData", "chunks": [c.to_dict() for c in new_chunks]},
        )

        await self._broadcast_message(
            {"type": "message", "text": "A new player has joined the forest!"},
            exclude=player_id,
        )

    async def _handle_client_messages(self, websocket: WebSocket, player_id: str):
        """Process messages one at a time, in the order the client sent them."""
        while player_id in self.connections:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Dropping non-JSON frame from %s", player_id)
                continue
            await self.process_message(player_id, data)

    async def process_message(self, player_id: str, data):
        """Validate and dispatch a single message from a client."""
        message = parse_client_message(data)
        if message is None:
            return

        if isinstance(message, UpdatePositionMessage):
            await self._handle_update_position(player_id, message)
        elif isinstance(message, CollectBerryMessage):
            await self._handle_collect_berry(player_id, message)
        elif isinstance(message, InitiateKissMessage):
            await self._handle_initiate_kiss(player_id, message)
        elif isinstance(message, AcceptKissMessage):
            await self._handle_accept_kiss(player_id, message)
        elif isinstance(message, PlayerGroundedMessage):
            await self._handle_player_grounded(player_id)

    async def _handle_update_position(
        self, player_id: str, message: UpdatePositionMessage
    ):
        """Handle player position/state update."""
        respawned = self.game_service.update_player_state(
            player_id,
            message.position.to_entity(),
            message.velocity.to_entity(),
            message.state,
        )
        player = self.game_service.get_player(player_id)
        if not player:
            return

        # Stream chunks the player hasn't seen yet
        chunks = self.game_service.get_chunks_for_player(player.position)
        new_chunks = self.game_service.mark_chunks_loaded(player_id, chunks)
        if new_chunks:
            await self._send(
                player_id,
                {"type": "chunkData", "chunks": [c.to_dict() for c in new_chunks]},
            )

        nearby_players = self.game_service.get_nearby_players(player_id)
        if nearby_players:
            await self._send(
                player_id,
                {
                    "type": "playerPositions",
                    "players": [p.to_position_update() for p in nearby_players],
                },
            )
            own_update = {
                "type": "playerPositions",
                "players": [player.to_position_update()],
            }
            for other in nearby_players:
                await self._send(other.id, own_update)

        if respawned:
            await self._send_respawn(player_id)

        await self._send(
            player_id,
            {"type": "updateVitality", "playerId": player_id, "vitality": player.vitality},
        )
        await self._send(
            player_id,
            {"type": "updateScore", "playerId": player_id, "score": player.score},
        )

    async def _handle_collect_berry(self, player_id: str, message: CollectBerryMessage):
        """Handle berry collection."""
        success = self.game_service.collect_berry(
            player_id, message.chunkId, message.berryId
        )
        if not success:
            return

        player = self.game_service.get_player(player_id)
        collected = {
            "type": "berryCollected",
            "berryId": message.berryId,
            "chunkId": message.chunkId,
            "playerId": player_id,
        }
        await self._send(player_id, {**collected, "newVitality": player.vitality})
        await self._broadcast_message(collected, exclude=player_id)

    async def _handle_initiate_kiss(self, player_id: str, message: InitiateKissMessage):
        """Relay a kiss request to its target, if connected."""
        if message.targetPlayerId in self.connections:
            await self._send(
                message.targetPlayerId, {"type": "kissRequest", "fromPlayerId": player_id}
            )

    async def _handle_accept_kiss(self, player_id: str, message: AcceptKissMessage):
        """Handle kiss acceptance."""
        from_id = message.fromPlayerId
        if not self.game_service.process_kiss(player_id, from_id):
            return

        await self._send(
            player_id,
            {"type": "kissCompleted", "player1Id": player_id, "player2Id": from_id},
        )
        await self._send(
            from_id,
            {"type": "kissCompleted", "player1Id": from_id, "player2Id": player_id},
        )

        for pid in (player_id, from_id):
            player = self.game_service.get_player(pid)
            if player:
                await self._send(
                    pid,
                    {"type": "babyAdded", "playerId": pid, "totalBabies": player.babies},
                )

        await self._broadcast_message(
            {"type": "kissCompleted", "player1Id": player_id, "player2Id": from_id},
            exclude={player_id, from_id},
        )

    async def _handle_player_grounded(self, player_id: str):
        """Report baby loss and game over after the player touched the ground."""
        player = self.game_service.get_player(player_id)
        if not player:
            return

        await self._send(
            player_id,
            {
                "type": "loseBaby",
                "playerId": player_id,
                "reason": "ground",
                "remainingBabies": player.babies,
            },
        )

        if player.vitality <= 0 and player.babies <= 0:
            await self._send(player_id, {"type": "gameOver", "playerId": player_id})
            await self._send_respawn(player_id)

    async def _send_respawn(self, player_id: str):
        player = self.game_service.get_player(player_id)
        if not player:
            return
        await self._send(
            player_id,
            {
                "type": "respawn",
                "playerId": player_id,
                "position": asdict(player.position),
                "vitality": player.vitality,
            },
        )

    async def disconnect(self, player_id: str):
        """Handle client disconnection."""
        if self.connections.pop(player_id, None) is None:
            return
        logger.info("Player disconnected: %s", player_id)

        self.game_service.remove_player(player_id)

        await self._broadcast_message({"type": "playerLeft", "playerId": player_id})
        await self._broadcast_message(
            {"type": "message", "text": "A player has left the forest."}
        )

    async def _send(self, player_id: str, message: dict) -> bool:
        """Send a message to one player, dropping the connection if it is dead."""
        websocket = self.connections.get(player_id)
        if websocket is None:
            return False

        try:
            await websocket.send_json(message)
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning("Failed to send %s to %s: %s", message["type"], player_id, e)
            await self.disconnect(player_id)
            return False

    async def _broadcast_message(self, message: dict, exclude=None):
        """Broadcast a message to all connected clients."""
        if exclude is None:
            excluded = set()
        elif isinstance(exclude, str):
            excluded = {exclude}
        else:
            excluded = set(exclude)

        for player_id in list(self.connections):
            if player_id not in excluded:
                await self._send(player_id, message)
