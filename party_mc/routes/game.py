"""
Module routes/game.py
Rôle:
- Endpoints publics relatifs à l'état de la partie d'une session.

Intégrations:
- session_store: un `GameState` par session (défaut: session partagée).
- turn_controller: annule le tour en vol lors d'un reset.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from party_mc.models.player import Player
from party_mc.services.session_store import (
    get_session_state,
    list_session_ids,
    normalize_session_id,
    reset_session_state,
)
from party_mc.services.turn_controller import TURNS

router = APIRouter(prefix="/game", tags=["game"])


class GameStateResponse(BaseModel):
    session_id: str
    players: List[Player]
    current_player_index: int
    current_player: Optional[str]
    game_started: bool
    last_ai_message: str
    enabled_mods: List[str]
    turn_in_flight: bool


def _state_payload(session_id: str) -> Dict[str, Any]:
    snapshot = get_session_state(session_id).snapshot()
    snapshot["turn_in_flight"] = TURNS.has_inflight(session_id)
    return snapshot


@router.get("/state", response_model=GameStateResponse)
def get_state(
    session_id: Optional[str] = Query(default=None, description="Identifiant de session"),
):
    """Snapshot : joueurs (ordre de passage), joueur courant, drapeaux, dernier message du MC."""
    return _state_payload(normalize_session_id(session_id))


@router.post("/reset", response_model=GameStateResponse)
def reset_game(
    session_id: Optional[str] = Query(default=None, description="Identifiant de session"),
):
    """Recommence une partie vierge pour la session (le tour en vol est annulé)."""
    sid = normalize_session_id(session_id)
    TURNS.cancel(sid)
    reset_session_state(sid)
    return _state_payload(sid)


@router.get("/sessions")
def list_sessions():
    """Sessions actuellement en mémoire (une partie par session)."""
    return {"sessions": sorted(list_session_ids())}
