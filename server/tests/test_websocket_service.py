"""Tests for message routing between connected players."""

import asyncio

import pytest


def run(coro):
    return asyncio.run(coro)


def position_update(y, state="gliding", x=0.0, z=0.0):
    return {
        "type": "updatePosition",
        "position": {"x": x, "y": y, "z": z},
        "velocity": {"x": 0, "y": 0, "z": 0},
        "state": state,
    }


@pytest.fixture
def connect(websocket_service, fake_socket_factory):
    """Connect a fake client under a fixed player id."""

    def _connect(player_id):
        socket = fake_socket_factory()
        run(websocket_service.connect(player_id, socket))
        return socket

    return _connect


class TestConnect:
    def test_initial_state(self, websocket_service, connect):
        socket = connect("p1")

        assert socket.types() == ["gameState", "message", "playerJoined", "chunkData"]
        game_state, _, joined, chunk_data = socket.sent
        assert game_state["playerId"] == "p1"
        assert game_state["forestSeed"] == 42
        assert game_state["players"] == []
        assert joined["position"] == {"x": 0.0, "y": 10.0, "z": 0.0}
        assert joined["vitality"] == 100
        assert [c["id"] for c in chunk_data["chunks"]] == ["chunk-0", "chunk-20"]

        player = websocket_service.game_service.get_player("p1")
        assert player.loadedChunks == {"chunk-0", "chunk-20"}

    def test_others_are_told(self, connect):
        first = connect("p1")
        second = connect("p2")

        assert first.sent[-1] == {
            "type": "message",
            "text": "A new player has joined the forest!",
        }
        assert [p["id"] for p in second.sent[0]["players"]] == ["p1"]


class TestUpdatePosition:
    def test_streams_only_new_chunks(self, websocket_service, connect):
        socket = connect("p1")
        socket.sent.clear()

        run(websocket_service.process_message("p1", position_update(50)))

        assert socket.types() == ["chunkData", "updateVitality", "updateScore"]
        assert [c["id"] for c in socket.sent[0]["chunks"]] == ["chunk-40", "chunk-60"]
        assert socket.sent[1]["vitality"] == pytest.approx(99.9)
        assert socket.sent[2]["score"] == 1

    def test_no_chunk_data_when_nothing_new(self, websocket_service, connect):
        socket = connect("p1")
        socket.sent.clear()

        run(websocket_service.process_message("p1", position_update(12, "idle")))

        assert socket.types() == ["updateVitality", "updateScore"]
        assert socket.sent[1]["score"] == 0

    def test_nearby_players_exchange_positions(self, websocket_service, connect):
        first = connect("p1")
        second = connect("p2")
        far = connect("p3")
        websocket_service.game_service.get_player("p3").position.y = 500
        for socket in (first, second, far):
            socket.sent.clear()

        run(websocket_service.process_message("p1", position_update(15, x=3)))

        to_self = first.of_type("playerPositions")
        assert [p["id"] for p in to_self[0]["players"]] == ["p2"]

        to_other = second.of_type("playerPositions")
        assert to_other[0]["players"][0]["id"] == "p1"
        assert to_other[0]["players"][0]["position"] == {"x": 3.0, "y": 15.0, "z": 0.0}
        assert far.sent == []

    def test_respawn_is_pushed(self, websocket_service, connect):
        socket = connect("p1")
        websocket_service.game_service.get_player("p1").vitality = 0.1
        socket.sent.clear()

        run(websocket_service.process_message("p1", position_update(80)))

        respawn = socket.of_type("respawn")[0]
        assert respawn["position"] == {"x": 0.0, "y": 10.0, "z": 0.0}
        assert respawn["vitality"] == 100
        assert socket.of_type("updateVitality")[0]["vitality"] == 100


class TestCollectBerry:
    def test_success_is_confirmed_and_broadcast(self, websocket_service, connect):
        collector = connect("p1")
        other = connect("p2")
        chunk = websocket_service.game_service.chunks["chunk-0"]
        berry = chunk.berries[0]
        collector.sent.clear()
        other.sent.clear()

        message = {"type": "collectBerry", "berryId": berry.id, "chunkId": chunk.id}
        run(websocket_service.process_message("p1", message))

        assert collector.sent == [
            {
                "type": "berryCollected",
                "berryId": berry.id,
                "chunkId": chunk.id,
                "playerId": "p1",
                "newVitality": 100,
            }
        ]
        assert other.sent == [
            {
                "type": "berryCollected",
                "berryId": berry.id,
                "chunkId": chunk.id,
                "playerId": "p1",
            }
        ]

    def test_failure_is_silent(self, websocket_service, connect):
        collector = connect("p1")
        other = connect("p2")
        collector.sent.clear()
        other.sent.clear()

        message = {"type": "collectBerry", "berryId": "nope", "chunkId": "chunk-0"}
        run(websocket_service.process_message("p1", message))

        assert collector.sent == []
        assert other.sent == []


class TestKiss:
    def test_initiate_is_relayed(self, websocket_service, connect):
        connect("p1")
        target = connect("p2")
        target.sent.clear()

        run(websocket_service.process_message("p1", {"type": "initiateKiss", "targetPlayerId": "p2"}))

        assert target.sent == [{"type": "kissRequest", "fromPlayerId": "p1"}]

    def test_initiate_to_unknown_target(self, websocket_service, connect):
        sender = connect("p1")
        sender.sent.clear()

        run(websocket_service.process_message("p1", {"type": "initiateKiss", "targetPlayerId": "ghost"}))

        assert sender.sent == []

    def test_accept_breeds_babies(self, websocket_service, connect):
        initiator = connect("p1")
        acceptor = connect("p2")
        bystander = connect("p3")
        for socket in (initiator, acceptor, bystander):
            socket.sent.clear()

        run(websocket_service.process_message("p2", {"type": "acceptKiss", "fromPlayerId": "p1"}))

        assert acceptor.sent == [
            {"type": "kissCompleted", "player1Id": "p2", "player2Id": "p1"},
            {"type": "babyAdded", "playerId": "p2", "totalBabies": 1},
        ]
        assert initiator.sent == [
            {"type": "kissCompleted", "player1Id": "p1", "player2Id": "p2"},
            {"type": "babyAdded", "playerId": "p1", "totalBabies": 1},
        ]
        assert bystander.sent == [
            {"type": "kissCompleted", "player1Id": "p2", "player2Id": "p1"}
        ]

        # The babies survive the notification
        assert websocket_service.game_service.get_player("p1").babies == 1
        assert websocket_service.game_service.get_player("p2").babies == 1

    def test_accept_own_request_is_ignored(self, websocket_service, connect):
        socket = connect("p1")
        socket.sent.clear()

        run(websocket_service.process_message("p1", {"type": "acceptKiss", "fromPlayerId": "p1"}))

        assert socket.sent == []
        assert websocket_service.game_service.get_player("p1").babies == 0

    def test_accept_out_of_range(self, websocket_service, connect):
        initiator = connect("p1")
        acceptor = connect("p2")
        websocket_service.game_service.get_player("p1").position.x = 5
        initiator.sent.clear()
        acceptor.sent.clear()

        run(websocket_service.process_message("p2", {"type": "acceptKiss", "fromPlayerId": "p1"}))

        assert initiator.sent == []
        assert acceptor.sent == []


class TestGrounded:
    def test_reports_remaining_babies(self, websocket_service, connect):
        socket = connect("p1")
        websocket_service.game_service.get_player("p1").babies = 2
        socket.sent.clear()

        run(websocket_service.process_message("p1", {"type": "playerGrounded"}))

        assert socket.sent == [
            {"type": "loseBaby", "playerId": "p1", "reason": "ground", "remainingBabies": 2}
        ]
        assert websocket_service.game_service.get_player("p1").babies == 2

    def test_game_over(self, websocket_service, connect):
        socket = connect("p1")
        websocket_service.game_service.get_player("p1").vitality = 0
        socket.sent.clear()

        run(websocket_service.process_message("p1", {"type": "playerGrounded"}))

        assert socket.types() == ["loseBaby", "gameOver", "respawn"]


class TestDisconnect:
    def test_player_left_is_broadcast(self, websocket_service, connect):
        connect("p1")
        other = connect("p2")
        other.sent.clear()

        run(websocket_service.disconnect("p1"))

        assert websocket_service.game_service.get_player("p1") is None
        assert other.sent == [
            {"type": "playerLeft", "playerId": "p1"},
            {"type": "message", "text": "A player has left the forest."},
        ]

    def test_disconnect_twice_is_harmless(self, websocket_service, connect):
        connect("p1")
        run(websocket_service.disconnect("p1"))
        run(websocket_service.disconnect("p1"))
        assert websocket_service.connections == {}

    def test_dead_socket_is_dropped(self, websocket_service, connect):
        connect("p1")
        dead = connect("p2")
        dead.closed = True

        run(websocket_service.process_message("p1", {"type": "initiateKiss", "targetPlayerId": "p2"}))

        assert "p2" not in websocket_service.connections
        assert websocket_service.game_service.get_player("p2") is None


def test_malformed_message_is_ignored(websocket_service, connect):
    socket = connect("p1")
    socket.sent.clear()

    run(websocket_service.process_message("p1", {"type": "collectBerry"}))
    run(websocket_service.process_message("p1", {"type": "updatePosition"}))

    assert socket.sent == []
    assert websocket_service.game_service.get_player("p1").vitality == 100


def test_non_finite_position_is_dropped(websocket_service, connect):
    socket = connect("p1")
    socket.sent.clear()

    run(websocket_service.process_message("p1", position_update(float("inf"))))
    run(websocket_service.process_message("p1", position_update(float("nan"))))

    assert socket.sent == []
    player = websocket_service.game_service.get_player("p1")
    assert player.position.y == 10
    assert player.score == 0


class BrokenWebSocket:
    """A socket that fails with an unexpected error on its first read."""

    client = ("test", 0)

    def __init__(self):
        self.sent = []

    async def accept(self):
        pass

    async def send_json(self, data):
        self.sent.append(data)

    async def receive_text(self):
        raise ValueError("corrupt frame")


def test_unexpected_error_is_logged_and_disconnects(websocket_service, caplog):
    websocket = BrokenWebSocket()

    with caplog.at_level("ERROR", logger="services.websocket_service"):
        run(websocket_service.handle_connection(websocket))

    assert "WebSocket error for player" in caplog.text
    assert websocket_service.connections == {}
    assert websocket_service.game_service.players == {}
    assert websocket.sent[0]["type"] == "gameState"
