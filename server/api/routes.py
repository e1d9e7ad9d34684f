# server/api/routes.py
"""API routes for the game server."""

from fastapi import APIRouter
from services.game_service import GameService
from config.settings import get_game_config


class GameAPI:
    """API routes for game-related endpoints."""

    def __init__(self, game_service: GameService):
        self.game_service = game_service
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Set up all API routes."""

        @self.router.get("/api/health")
        async def health():
            """Liveness check."""
            return {"message": "Sugar Glide server running"}

        @self.router.get("/api/game/config")
        async def get_game_config_endpoint():
            """Get the game constants shared with clients."""
            return get_game_config()

        @self.router.get("/api/game/players")
        async def get_players():
            """Get all connected players."""
            return {"players": self.game_service.get_all_players()}

        @self.router.get("/api/game/chunks")
        async def get_chunks():
            """Get every chunk generated so far."""
            return {"chunks": self.game_service.get_all_chunks()}

        @self.router.get("/api/game/stats")
        async def get_game_stats():
            """Get game statistics."""
            return {
                "totalPlayers": len(self.game_service.players),
                "totalChunks": len(self.game_service.chunks),
                "remainingBerries": self.game_service.count_remaining_berries(),
            }
