# server/main.py
"""Application entry point: wires the game services into a FastAPI app."""

import logging
import os
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.routes import GameAPI
from config.logging_config import setup_logging
from config.settings import HOST, PORT, STATIC_DIR, get_cors_origins, is_production
from services.game_service import GameService
from services.websocket_service import WebSocketService

logger = logging.getLogger(__name__)


def create_app(
    game_service: Optional[GameService] = None, seed: Optional[int] = None
) -> FastAPI:
    """Build the app around a game state store, creating one if not given."""
    if game_service is None:
        game_service = GameService()

    app = FastAPI(title="Sugar Glide")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    websocket_service = WebSocketService(game_service, seed=seed)
    app.state.game_service = game_service
    app.state.websocket_service = websocket_service

    app.include_router(GameAPI(game_service).router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket_service.handle_connection(websocket)

    # The built frontend is served from the same origin in production
    if is_production() and os.path.isdir(STATIC_DIR):
        app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
        logger.info("Serving static files from %s", STATIC_DIR)

    return app


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    logger.info("Game server running on http://%s:%s", HOST, PORT)
    uvicorn.run(create_app(), host=HOST, port=PORT)
