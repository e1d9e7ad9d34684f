# server/config/settings.py
"""Game configuration constants and settings."""

import os

# World settings
CHUNK_HEIGHT = 20
BRANCHES_PER_CHUNK = 4
BERRIES_PER_CHUNK = 2
BRANCH_SPAWN_HEIGHTS = (5, 10, 15, 20)  # Relative to chunk base

# Visibility settings
VISIBILITY_RANGE = 60  # How far up/down players can see
HORIZONTAL_RANGE = 30

# Player settings
SPAWN_POSITION = (0.0, 10.0, 0.0)
MAX_VITALITY = 100.0
VITALITY_DECAY = 0.1  # Per update, assuming updates every 100ms
BERRY_VITALITY = 50.0
KISS_DISTANCE = 2.0

# Server settings
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
APP_ENV = os.environ.get("APP_ENV", "development")
STATIC_DIR = os.environ.get("STATIC_DIR", "dist")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

WELCOME_MESSAGE = "Welcome to Sugar Glide!"


def is_production() -> bool:
    """Whether the server runs with the production profile."""
    return APP_ENV == "production"


def get_cors_origins() -> list:
    """Origins allowed to open cross-origin connections."""
    raw = os.environ.get("CORS_ORIGINS")
    if raw is not None:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    # Frontend is served from the same origin in production
    if is_production():
        return []
    return ["http://localhost:5173"]


def get_game_config():
    """Get the client-facing game configuration as a dictionary."""
    return {
        "chunkHeight": CHUNK_HEIGHT,
        "branchesPerChunk": BRANCHES_PER_CHUNK,
        "berriesPerChunk": BERRIES_PER_CHUNK,
        "visibilityRange": VISIBILITY_RANGE,
        "horizontalRange": HORIZONTAL_RANGE,
        "maxVitality": MAX_VITALITY,
        "vitalityDecay": VITALITY_DECAY,
        "berryVitality": BERRY_VITALITY,
        "kissDistance": KISS_DISTANCE,
    }
