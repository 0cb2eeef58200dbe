import asyncio

import pytest

from party_mc.config.settings import settings
from party_mc.models.chat import ChatMessage
from party_mc.services import llm_engine, session_store
from party_mc.services.turn_controller import TURNS


class FakeBackend:
    """Backend LLM factice : émet `chunks`, puis lève `error` ou reste bloqué si `hang`."""

    def __init__(self, chunks=(), error=None, hang=False):
        self.chunks = list(chunks)
        self.error = error
        self.hang = hang
        self.calls = []

    async def stream_chat(self, system, messages, *, request_id=None):
        self.calls.append({"system": system, "messages": messages, "request_id": request_id})
        for chunk in self.chunks:
            await asyncio.sleep(0)
            yield chunk
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()

    async def complete(self, system, messages):
        parts = []
        async for delta in self.stream_chat(system, messages):
            parts.append(delta)
        return "".join(parts)


def msg(role, content):
    return ChatMessage(role=role, content=content)


@pytest.fixture(autouse=True)
def isolated_sessions(monkeypatch):
    """Sessions et tours en vol remis à zéro entre chaque test."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "test-key")
    session_store.clear_sessions()
    TURNS._inflight.clear()
    yield
    session_store.clear_sessions()
    TURNS._inflight.clear()


@pytest.fixture
def install_backend(monkeypatch):
    """Remplace le client LLM global par un FakeBackend et le renvoie."""

    def _install(*args, **kwargs):
        backend = FakeBackend(*args, **kwargs)
        monkeypatch.setattr(llm_engine, "CLIENT", backend)
        return backend

    return _install
