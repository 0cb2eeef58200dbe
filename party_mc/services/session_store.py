"""
Session store registry
======================

Expose des helpers pour récupérer le `GameState` d'une session. Les instances sont
mises en cache en mémoire et créées à la demande (pas de disque).

Un client qui ne précise pas de session partage `settings.DEFAULT_SESSION_ID` : c'est
le comportement "une seule partie par process", dernier écrivain gagnant.
"""
from __future__ import annotations

from threading import RLock
from typing import Dict, Optional

from party_mc.config.settings import settings
from .game_state import GameState

_SESSIONS: Dict[str, GameState] = {}
_LOCK = RLock()


def normalize_session_id(session_id: Optional[str]) -> str:
    return (session_id or "").strip() or settings.DEFAULT_SESSION_ID


def get_session_state(session_id: Optional[str] = None) -> GameState:
    """
    Retourne l'instance `GameState` associée à `session_id`.
    Crée la session si nécessaire.
    """
    normalized = normalize_session_id(session_id)
    with _LOCK:
        state = _SESSIONS.get(normalized)
        if state is None:
            state = GameState(session_id=normalized)
            _SESSIONS[normalized] = state
        return state


def reset_session_state(session_id: Optional[str] = None) -> GameState:
    """Remet la session à zéro (même instance, pour les tours en cours qui la tiennent)."""
    state = get_session_state(session_id)
    state.reset()
    return state


def list_session_ids() -> list[str]:
    """Retourne la liste des sessions actuellement chargées en mémoire."""
    with _LOCK:
        return list(_SESSIONS.keys())


def clear_sessions() -> None:
    with _LOCK:
        _SESSIONS.clear()
