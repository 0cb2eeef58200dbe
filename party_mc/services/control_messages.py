"""
Service: control_messages.py
- Lecture de l'historique de chat envoyé par le client à chaque tour.

Fonctions principales:
- enabled_mods_from(messages, default): ids des modificateurs du dernier message de contrôle.
- latest_user_message(messages): dernier message humain (ou None).
- conversation_for_backend(messages): historique sans aucun message `system`.

Format d'un message de contrôle:
    {"role": "system", "content": "Mods updated. Enabled mods: drinking_game, trivia_master"}
"""
from typing import Iterable, List, Optional, Sequence

from party_mc.models.chat import ChatMessage

CONTROL_PREFIX = "Mods updated"
LIST_SEPARATOR = ", "


def is_control_message(message: ChatMessage) -> bool:
    return message.role == "system" and message.content.startswith(CONTROL_PREFIX)


def parse_mod_ids(content: str) -> List[str]:
    """Ids listés après le dernier ": " (le libellé peut lui-même contenir ": ")."""
    _, sep, tail = content.rpartition(": ")
    if not sep:
        return []
    return [part.strip() for part in tail.split(LIST_SEPARATOR) if part.strip()]


def enabled_mods_from(messages: Sequence[ChatMessage], default: Iterable[str]) -> List[str]:
    """Ids activés selon le message de contrôle le plus récent, sinon `default`."""
    for message in reversed(messages):
        if is_control_message(message):
            return parse_mod_ids(message.content)
    return list(default)


def latest_user_message(messages: Sequence[ChatMessage]) -> Optional[ChatMessage]:
    for message in reversed(messages):
        if message.role == "user":
            return message
    return None


def conversation_for_backend(messages: Sequence[ChatMessage]) -> List[dict]:
    """Historique transmis au LLM: tous les messages `system` sont retirés."""
    return [{"role": m.role, "content": m.content} for m in messages if m.role != "system"]
