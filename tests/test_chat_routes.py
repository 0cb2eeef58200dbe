import asyncio

import pytest

pytest.importorskip("httpx", reason="httpx requis pour les tests client FastAPI")

from fastapi.testclient import TestClient

from party_mc.main import app
from party_mc.services.llm_engine import LLMServiceError
from party_mc.services.session_store import get_session_state

client = TestClient(app)


def _chat(messages, **params):
    body = {"messages": messages}
    session_id = params.pop("session_id", None)
    if session_id:
        body["session_id"] = session_id
    return client.post("/api/chat", json=body, params=params)


def test_chat_streams_text_and_updates_state(install_backend):
    install_backend(["Welcome ", "Alice! ", "Who's next?"])

    response = _chat([{"role": "user", "content": "Alice"}])

    assert response.status_code == 200
    assert response.text == "Welcome Alice! Who's next?"
    assert response.headers["x-session-id"] == "default"
    state = get_session_state()
    assert [p.name for p in state.players] == ["Alice"]
    assert state.last_ai_message == "Welcome Alice! Who's next?"


def test_full_game_flow_over_http(install_backend):
    install_backend(["ok"])
    history = []
    for text in ("Alice", "ready", "Bob", "ready"):
        history.append({"role": "user", "content": text})
        assert _chat(history, session_id="party").status_code == 200
        history.append({"role": "assistant", "content": "ok"})

    state = client.get("/game/state", params={"session_id": "party"}).json()
    assert state["game_started"] is True
    assert state["current_player"] == "Alice"
    assert [p["introduced"] for p in state["players"]] == [True, True]

    history.append({"role": "user", "content": "I choose truth"})
    _chat(history, session_id="party")
    assert client.get("/game/state", params={"session_id": "party"}).json()["current_player"] == "Bob"

    history.append({"role": "user", "content": "done"})
    _chat(history, session_id="party")
    assert client.get("/game/state", params={"session_id": "party"}).json()["current_player"] == "Alice"


def test_control_message_reaches_prompt_but_not_conversation(install_backend):
    backend = install_backend(["ok"])

    _chat([
        {"role": "system", "content": "Mods updated. Enabled mods: drinking_game, trivia_master"},
        {"role": "user", "content": "Alice"},
    ])

    call = backend.calls[0]
    assert "enabled: drinking_game, trivia_master." in call["system"]
    assert call["messages"] == [{"role": "user", "content": "Alice"}]
    assert get_session_state().enabled_mods == ["drinking_game", "trivia_master"]


def test_data_protocol_framing(install_backend):
    install_backend(["Hello ", "there"])

    response = _chat([{"role": "user", "content": "Alice"}], protocol="data")

    assert response.status_code == 200
    assert response.text == '0:"Hello "\n0:"there"\nd:{"finishReason":"stop"}\n'


def test_data_protocol_reports_failure_after_first_chunk(install_backend):
    install_backend(["Hi"], error=LLMServiceError("connection reset"))

    response = _chat([{"role": "user", "content": "Alice"}], protocol="data")

    assert response.status_code == 200
    assert response.text == '0:"Hi"\n3:"An error occurred."\nd:{"finishReason":"error"}\n'
    assert get_session_state().last_ai_message == ""


def test_backend_failure_is_generic_500(install_backend):
    install_backend(error=LLMServiceError("rate limited"))

    response = _chat([{"role": "user", "content": "Alice"}])

    assert response.status_code == 500
    assert response.text == "Internal Server Error"


def test_cancelled_backend_call_is_499(install_backend):
    install_backend(error=asyncio.CancelledError())

    response = _chat([{"role": "user", "content": "Alice"}])

    assert response.status_code == 499
    assert response.text == "Request aborted"


def test_invalid_role_is_rejected():
    response = client.post("/api/chat", json={"messages": [{"role": "tool", "content": "x"}]})
    assert response.status_code == 422


def test_cancel_endpoint_without_turn():
    response = client.post("/api/chat/cancel", params={"session_id": "idle"})
    assert response.status_code == 200
    assert response.json() == {"ok": True, "session_id": "idle", "cancelled": False}


def test_game_state_and_reset(install_backend):
    install_backend(["hi"])
    _chat([{"role": "user", "content": "Alice"}], session_id="room")

    state = client.get("/game/state", params={"session_id": "room"}).json()
    assert state["players"] == [{"name": "Alice", "introduced": False}]
    assert state["last_ai_message"] == "hi"
    assert state["enabled_mods"] == ["drinking_game"]
    assert state["turn_in_flight"] is False

    reset = client.post("/game/reset", params={"session_id": "room"}).json()
    assert reset["players"] == []
    assert reset["last_ai_message"] == ""
    assert reset["game_started"] is False


def test_mods_endpoints():
    mods = client.get("/mods").json()
    assert mods[0] == {"id": "drinking_game", "name": "Drinking Game", "enabled": True}

    assert client.get("/mods/defaults").json() == {"enabled": ["drinking_game"], "names": ["Drinking Game"]}
    assert client.get("/mods/charades").json()["name"] == "Charades"
    assert client.get("/mods/unknown").status_code == 404


def test_health(install_backend):
    install_backend(["pong"])
    assert client.get("/")
    assert client.get("/health").json()["ok"] is True

    llm = client.get("/health/llm").json()
    assert llm["ok"] is True
    assert llm["sample"] == "pong"


def test_sessions_listing(install_backend):
    install_backend(["hi"])
    _chat([{"role": "user", "content": "Alice"}], session_id="zeta")
    _chat([{"role": "user", "content": "Bob"}], session_id="alpha")

    assert client.get("/game/sessions").json() == {"sessions": ["alpha", "zeta"]}
