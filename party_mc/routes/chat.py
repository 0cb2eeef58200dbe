"""
Module routes/chat.py
Rôle:
- Un tour de conversation par requête : POST /api/chat (historique complet du client).
- Annulation explicite du tour en cours : POST /api/chat/cancel.

Réponses de POST /api/chat:
- 200 : flux de la réponse du MC ("text" brut ou "data" ligne par ligne).
- 499 : tour annulé avant toute réponse ("Client Closed Request").
- 500 : toute autre erreur (détail seulement dans les logs serveur).
"""
import asyncio
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from party_mc.config.settings import settings
from party_mc.models.chat import ChatRequest
from party_mc.services.session_store import normalize_session_id
from party_mc.services.stream_encoding import TEXT_MEDIA_TYPE, encode_turn
from party_mc.services.turn_controller import TURNS, CancellationHandle, TurnPhase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

STATUS_CLIENT_CLOSED_REQUEST = 499
DISCONNECT_POLL_SECONDS = 0.25


async def _cancel_on_disconnect(request: Request, handle: CancellationHandle) -> None:
    """Surveille la connexion tant que le premier fragment n'est pas arrivé."""
    while not handle.cancelled:
        if await request.is_disconnected():
            handle.cancel()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.post("")
async def chat(
    payload: ChatRequest,
    request: Request,
    protocol: Optional[Literal["text", "data"]] = Query(default=None, description="Format du flux"),
):
    """Traite un tour : inférence sur l'état, prompt, appel LLM en flux."""
    stream_protocol = protocol or settings.STREAM_PROTOCOL
    try:
        turn = await TURNS.open_turn(
            payload.messages,
            payload.session_id,
            watcher=lambda handle: _cancel_on_disconnect(request, handle),
        )
    except Exception:
        logger.exception("Error in chat route", extra={"session_id": payload.session_id})
        return PlainTextResponse("Internal Server Error", status_code=500)

    # une fois un fragment reçu, le statut est 200 : la suite se joue dans le flux
    if not turn.has_output:
        if turn.phase == TurnPhase.ABORTED:
            return PlainTextResponse("Request aborted", status_code=STATUS_CLIENT_CLOSED_REQUEST)
        if turn.phase == TurnPhase.FAILED:
            return PlainTextResponse("Internal Server Error", status_code=500)

    return StreamingResponse(
        encode_turn(turn, stream_protocol),
        media_type=TEXT_MEDIA_TYPE,
        headers={"X-Turn-Id": turn.turn_id, "X-Session-Id": turn.session_id, "Cache-Control": "no-cache"},
    )


@router.post("/cancel")
async def cancel_chat(
    session_id: Optional[str] = Query(default=None, description="Identifiant de session"),
):
    """Annule le tour en vol de la session (s'il existe)."""
    sid = normalize_session_id(session_id)
    cancelled = TURNS.cancel(sid)
    return {"ok": True, "session_id": sid, "cancelled": cancelled}
