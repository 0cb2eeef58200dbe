"""
Models / chat.py
Rôle:
- Typage des messages échangés avec le client de chat (historique complet à chaque tour).

Notes:
- `role` restreint à system/user/assistant (Literal) : un rôle inconnu donne un 422.
- Un message `system` dont le contenu commence par "Mods updated" est un message de
  contrôle (voir services/control_messages.py), jamais transmis au backend LLM.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: Role
    content: str = ""


class ChatRequest(BaseModel):
    """Corps de POST /api/chat."""
    messages: List[ChatMessage] = Field(default_factory=list)
    session_id: Optional[str] = Field(None, description="Session de jeu (défaut: session partagée)")
