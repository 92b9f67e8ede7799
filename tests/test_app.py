from unittest.mock import patch

import pytest
import responses

from scrapeblocker.app import BASE_WS_URL, CLIENT, build_ws_url, get_icon, main, run


def test_get_icon_returns_file_bytes(tmp_path):
    icon = tmp_path / "icono.ico"
    payload = b"\x00\x00\x01\x00icon"
    icon.write_bytes(payload)
    assert get_icon(icon) == payload
    assert get_icon(str(icon)) == payload


def test_get_icon_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_icon(tmp_path / "missing.ico")


def test_build_ws_url():
    assert build_ws_url(BASE_WS_URL, "jdoe", CLIENT) == "ws://10.96.16.67:8080/api/v1/ws/jdoe/latam"


def test_build_ws_url_keeps_order():
    url = build_ws_url("ws://localhost/ws", "alice", "acme")
    assert url.split("/")[-2:] == ["alice", "acme"]


def test_run_exits_when_user_unknown():
    with patch("getpass.getuser", side_effect=OSError("no user")):
        with pytest.raises(SystemExit) as excinfo:
            run()
    assert excinfo.value.code == 1


def test_main_exits_when_user_unknown():
    with patch("getpass.getuser", side_effect=OSError("no user")):
        with pytest.raises(SystemExit) as excinfo:
            main([])
    assert excinfo.value.code == 1


def test_main_help_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--help"])
    assert excinfo.value.code == 0
    assert "scrapeblocker" in capsys.readouterr().out


def test_run_stops_without_icon(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            "http://10.96.16.67:8080/api/v1/apps/latam",
            json={"processes": ["app.exe"], "urls": ["blocked.example.com"]},
        )
        with patch("getpass.getuser", return_value="DOMAIN\\jdoe"):
            assert run() is None
        assert len(rsps.calls) == 1
        assert rsps.calls[0].request.url == "http://10.96.16.67:8080/api/v1/apps/latam"