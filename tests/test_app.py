import json
import pytest
from starlette.websockets import WebSocketDisconnect
from constants import SERVICE_NAME, PORT
from events import CONNECTED, USERS_IN_ROOM, NEW_USER_CONNECTED, USER_DISCONNECTED, SIGNAL


def join(ws):
    """Read the handshake and usersInRoom. Returns (own id, members already present)."""
    hello = ws.receive_json()
    assert hello["event"] == CONNECTED
    users = ws.receive_json()
    assert users["event"] == USERS_IN_ROOM
    return hello["data"]["id"], users["data"]


def test_health(client):
    for path in ("/", "/health"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": SERVICE_NAME, "port": PORT}


def test_unknown_path_is_not_found(client):
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"status": "error", "detail": "Not Found"}


def test_connect_without_room_is_closed(client, app):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?name=Alice"):
            pass

    assert exc_info.value.code == 1008
    assert app.state.signaling.rooms() == frozenset()
    assert len(app.state.connections) == 0


def test_join_announce_and_leave(client, app):
    with client.websocket_connect("/ws?room=r&name=Alice") as alice:
        alice_id, present = join(alice)
        assert present == []

        with client.websocket_connect("/ws?room=r&name=Bob") as bob:
            bob_id, present = join(bob)
            assert present == [{"id": alice_id, "name": "Alice"}]

            announced = alice.receive_json()
            assert announced == {"event": NEW_USER_CONNECTED, "data": {"id": bob_id, "name": "Bob"}}

            members = app.state.signaling.members("r")
            assert [(m.connection_id, m.display_name) for m in members] == [(alice_id, "Alice"), (bob_id, "Bob")]

        left = alice.receive_json()
        assert left == {"event": USER_DISCONNECTED, "data": {"userId": bob_id}}
        assert [m.connection_id for m in app.state.signaling.members("r")] == [alice_id]

    assert app.state.signaling.rooms() == frozenset()


def test_anonymous_default_name(client):
    with client.websocket_connect("/ws?room=r") as first:
        join(first)
        with client.websocket_connect("/ws?room=r") as second:
            _, present = join(second)
            assert present[0]["name"] == "Anonymous"


def test_signal_relay(client):
    with client.websocket_connect("/ws?room=r&name=Alice") as alice:
        alice_id, _ = join(alice)
        with client.websocket_connect("/ws?room=r&name=Bob") as bob:
            bob_id, _ = join(bob)
            alice.receive_json()  # newUserConnected

            # Unreachable target and junk frames are dropped without closing the socket
            alice.send_json({"event": "signal", "data": {"to": "ghost", "data": {"type": "offer"}}})
            alice.send_text("not json")
            alice.send_json({"event": "chat", "data": "hi"})
            alice.send_json({"event": "signal", "data": {"data": "no target"}})

            offer = {"type": "offer", "sdp": "v=0\r\n"}
            alice.send_json({"event": "signal", "data": {"to": bob_id, "data": offer}})
            assert bob.receive_json() == {"event": SIGNAL, "data": {"from": alice_id, "data": offer}}

            answer = {"type": "answer", "sdp": "v=0\r\n"}
            bob.send_text(json.dumps({"event": "signal", "data": {"to": alice_id, "data": answer}}))
            assert alice.receive_json() == {"event": SIGNAL, "data": {"from": bob_id, "data": answer}}


def test_signal_across_rooms(client):
    with client.websocket_connect("/ws?room=one&name=Alice") as alice:
        alice_id, _ = join(alice)
        with client.websocket_connect("/ws?room=two&name=Bob") as bob:
            bob_id, present = join(bob)
            assert present == []

            alice.send_json({"event": "signal", "data": {"to": bob_id, "data": "candidate"}})
            assert bob.receive_json() == {"event": SIGNAL, "data": {"from": alice_id, "data": "candidate"}}
