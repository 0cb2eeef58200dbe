"""
Service: stream_encoding.py
- Mise en forme du flux de réponse renvoyé au client.

Protocoles:
- "text" : fragments bruts, `text/plain`.
- "data" : une ligne par partie, comme le flux de données consommé par le client web :
    0:"fragment"\n                 (texte)
    3:"message"\n                  (erreur survenue après le début du flux)
    d:{"finishReason":"stop"}\n    (fin ; "abort" si le tour a été annulé en cours)
"""
from typing import AsyncIterator

from .io_utils import dumps_text
from .turn_controller import Turn, TurnPhase

TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"
GENERIC_STREAM_ERROR = "An error occurred."

FINISH_REASONS = {
    TurnPhase.COMPLETED: "stop",
    TurnPhase.ABORTED: "abort",
    TurnPhase.FAILED: "error",
}


def text_part(chunk: str) -> str:
    return f"0:{dumps_text(chunk)}\n"


def error_part(message: str) -> str:
    return f"3:{dumps_text(message)}\n"


def finish_part(reason: str) -> str:
    return f"d:{dumps_text({'finishReason': reason})}\n"


async def encode_turn(turn: Turn, protocol: str = "text") -> AsyncIterator[str]:
    """Enveloppe `turn.iter_text()` selon le protocole choisi."""
    if protocol != "data":
        async for chunk in turn.iter_text():
            yield chunk
        return

    async for chunk in turn.iter_text():
        yield text_part(chunk)
    phase = await turn.wait_closed()
    if phase == TurnPhase.FAILED:
        yield error_part(GENERIC_STREAM_ERROR)
    yield finish_part(FINISH_REASONS.get(phase, "stop"))
