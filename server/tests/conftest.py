"""Pytest configuration and shared fixtures for the game server tests."""

import random

import pytest

from services.game_service import GameService
from services.websocket_service import WebSocketService


class FakeWebSocket:
    """Stand-in for a connected client socket that records what it is sent."""

    def __init__(self):
        self.sent = []
        self.closed = False

    async def send_json(self, data):
        if self.closed:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        self.sent.append(data)

    def types(self):
        return [message["type"] for message in self.sent]

    def of_type(self, message_type):
        return [message for message in self.sent if message["type"] == message_type]


@pytest.fixture
def game_service():
    """A store whose chunk content is reproducible."""
    return GameService(rng=random.Random(1234))


@pytest.fixture
def websocket_service(game_service):
    return WebSocketService(game_service, seed=42)


@pytest.fixture
def fake_socket_factory():
    return FakeWebSocket
