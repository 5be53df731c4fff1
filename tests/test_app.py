"""End-to-end tests over the FastAPI WebSocket endpoint."""
import pytest
from fastapi.testclient import TestClient

from chat_broker import get_logger
from main import create_app, handle_loop_exception


@pytest.fixture
def client():
    app = create_app(welcome_delay=0.1, typing_delay=0.1)
    with TestClient(app) as test_client:
        yield test_client


def handshake(ws):
    frame = ws.receive_json()
    assert frame["event"] == "connected"
    return frame["data"]["id"]


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Simple WebSocket Chat" in response.text


def test_static_assets(client):
    response = client.get("/static/chat.js")
    assert response.status_code == 200


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["connections"] == 0


def test_two_users_chat(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        handshake(alice)
        handshake(bob)

        alice.send_json({"event": "set username", "data": "Alice"})
        assert bob.receive_json() == {"event": "system message", "data": "Alice has joined the chat!"}
        assert alice.receive_json() == {"event": "system message", "data": "Welcome to the Simple WebSocket Chat!"}

        alice.send_json({"event": "chat message", "data": "hi"})
        expected = {"event": "chat message", "data": {"user": "Alice", "msg": "hi"}}
        assert alice.receive_json() == expected
        assert bob.receive_json() == expected


def test_private_message_and_unknown_target(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        handshake(alice)
        bob_id = handshake(bob)

        bob.send_json({"event": "set username", "data": "Bob"})
        assert alice.receive_json()["data"] == "Bob has joined the chat!"
        assert bob.receive_json()["data"] == "Welcome to the Simple WebSocket Chat!"

        alice.send_json({"event": "private message", "data": {"to": "nobody", "msg": "hello?"}})
        assert alice.receive_json() == {"event": "system message", "data": "⚠️ User not found."}

        alice.send_json({"event": "private message", "data": {"to": bob_id, "msg": "psst"}})
        assert bob.receive_json() == {
            "event": "chat message",
            "data": {"user": "Guest", "msg": "psst", "private": True},
        }


def test_typing_indicator_and_stop(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        handshake(alice)
        handshake(bob)

        alice.send_json({"event": "typing"})
        assert bob.receive_json() == {"event": "typing", "data": "Anonymous"}
        assert bob.receive_json() == {"event": "stop typing"}


def test_malformed_frames_keep_connection_open(client):
    with client.websocket_connect("/ws") as alice:
        handshake(alice)

        alice.send_text("not json")
        alice.send_json({"event": "unknown"})
        alice.send_json({"event": "chat message", "data": "   "})
        alice.send_json({"event": "reaction", "data": {"emoji": "👍"}})

        assert alice.receive_json() == {"event": "reaction", "data": {"emoji": "👍"}}


def test_departure_message(client):
    with client.websocket_connect("/ws") as bob:
        handshake(bob)

        with client.websocket_connect("/ws") as alice:
            handshake(alice)
            alice.send_json({"event": "set username", "data": "Alice"})
            assert bob.receive_json()["data"] == "Alice has joined the chat!"

        assert bob.receive_json() == {"event": "system message", "data": "Alice has left the chat."}


def identify_alice_with_bob_watching(alice, bob):
    handshake(alice)
    handshake(bob)
    alice.send_json({"event": "set username", "data": "Alice"})
    assert bob.receive_json()["data"] == "Alice has joined the chat!"
    assert alice.receive_json()["data"] == "Welcome to the Simple WebSocket Chat!"


def test_deeply_nested_frame_keeps_session(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        identify_alice_with_bob_watching(alice, bob)

        alice.send_text("[" * 5000)
        alice.send_json({"event": "reaction", "data": {"emoji": "🎉"}})

        assert bob.receive_json() == {"event": "reaction", "data": {"emoji": "🎉"}}


def test_binary_frame_keeps_session(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        identify_alice_with_bob_watching(alice, bob)

        alice.send_bytes(b"\x00\x01")
        alice.send_json({"event": "reaction", "data": {"emoji": "🎉"}})

        assert bob.receive_json() == {"event": "reaction", "data": {"emoji": "🎉"}}


def test_health_counts_identified_users(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        identify_alice_with_bob_watching(alice, bob)

        body = client.get("/health").json()
        assert body["connections"] == 2
        assert body["sessions"]["sessions"] == 2
        assert body["sessions"]["identified"] == 1


def test_failing_route_returns_500_and_server_keeps_serving():
    app = create_app(welcome_delay=0.1, typing_delay=0.1)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("route bug")

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

        assert test_client.get("/health").json()["status"] == "healthy"


def test_loop_exception_handler_logs(caplog):
    logger = get_logger()
    logger.addHandler(caplog.handler)
    try:
        handle_loop_exception(None, {"message": "Task exception was never retrieved",
                                     "exception": RuntimeError("lost task")})
        handle_loop_exception(None, {"message": "Unclosed transport"})
    finally:
        logger.removeHandler(caplog.handler)

    errors = [r.getMessage() for r in caplog.records if r.levelname == "ERROR"]
    assert any("lost task" in message for message in errors)
    assert any("Unclosed transport" in message for message in errors)
