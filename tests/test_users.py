import json
from unittest.mock import MagicMock, patch

import pytest
import responses
import websocket

from scrapeblocker.config import ConfigResponse
from scrapeblocker.configstore import get_current_config, set_current_config
from scrapeblocker.domain import User
from scrapeblocker.users import connect_and_keep_open, get_user, handle_websocket_message

APPS_URL = "http://10.96.16.67:8080/api/v1/apps/latam"


def _update(name, active):
    return json.dumps({"type": "update", "active_users": [{"name": name, "active": active}]})


@patch("getpass.getuser", return_value="CORP\\alice")
def test_get_user_strips_domain(mock_getuser):
    user = get_user()
    assert user.name == "alice"
    assert user.active is True
    assert user.last_connection.tzinfo is not None


@patch("getpass.getuser", return_value="bob")
def test_get_user_plain_name(mock_getuser):
    assert get_user().name == "bob"


def test_update_sets_active_state():
    user = User(name="alice", active=True)
    handle_websocket_message(_update("alice", False), user)
    assert user.active is False
    handle_websocket_message(_update("alice", True).encode(), user)
    assert user.active is True


def test_update_for_other_user_is_ignored():
    user = User(name="alice", active=True)
    handle_websocket_message(_update("carol", False), user)
    assert user.active is True


def test_unknown_type_changes_nothing():
    user = User(name="alice", active=True)
    handle_websocket_message(json.dumps({"type": "ping"}), user)
    assert user == User(name="alice", active=True)


def test_invalid_json_raises():
    with pytest.raises(ValueError, match="decode"):
        handle_websocket_message("{not json", User(name="alice"))


def test_non_object_raises():
    with pytest.raises(ValueError, match="JSON object"):
        handle_websocket_message("[1, 2]", User(name="alice"))


@pytest.mark.parametrize("kind", ["refresh", "configuracion"])
def test_refresh_stores_configuration(kind):
    set_current_config(ConfigResponse())
    user = User(name="alice", client="latam", active=True)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, APPS_URL, json={"processes": ["app.exe"], "urls": ["x.example.com"]})
        handle_websocket_message(json.dumps({"type": kind}), user)
    assert get_current_config() == ConfigResponse(["app.exe"], ["x.example.com"])


def test_refresh_failure_keeps_configuration():
    previous = ConfigResponse(["old.exe"], [])
    set_current_config(previous)
    user = User(name="alice", client="latam", active=True)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, APPS_URL, status=500)
        handle_websocket_message(json.dumps({"type": "refresh"}), user)
    assert get_current_config() == previous


def test_connect_and_keep_open_applies_messages():
    fake = MagicMock()
    fake.recv.side_effect = [
        "garbage",
        _update("alice", False),
        websocket.WebSocketConnectionClosedException("closed"),
    ]
    user = User(name="alice", active=True)
    with patch("websocket.create_connection", return_value=fake) as dial:
        connect_and_keep_open("ws://localhost:8080/api/v1/ws/alice/latam", user)
    dial.assert_called_once_with("ws://localhost:8080/api/v1/ws/alice/latam")
    assert user.active is False
    assert fake.close.called


def test_connect_and_keep_open_connect_failure():
    with patch("websocket.create_connection", side_effect=OSError("boom")):
        with pytest.raises(ConnectionError, match="boom"):
            connect_and_keep_open("ws://localhost:1/ws", User(name="alice"))