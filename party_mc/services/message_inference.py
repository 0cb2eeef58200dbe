"""
Service: message_inference.py
Rôle:
- Transformer le dernier message humain d'un tour en (au plus) une mutation de l'état.

Avant le démarrage:
1. nom candidat = dernier mot du message ; s'il fait plus d'un caractère et n'est pas
   déjà inscrit (casse ignorée) → nouveau joueur ;
2. sinon, si le message contient "ready" → le dernier inscrit est prêt, puis tentative
   de démarrage.
Après le démarrage: chaque message humain fait avancer le tour, quel que soit son contenu.

Heuristique volontairement naïve (ce n'est pas de la reconnaissance d'entités) : elle
est isolée derrière `MessageClassifier` pour pouvoir être remplacée sans toucher à
l'application des mutations.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Protocol

from .game_state import GameState

logger = logging.getLogger(__name__)

InferenceKind = Literal["add_player", "ready", "advance_turn", "none"]
READY_KEYWORD = "ready"


@dataclass(frozen=True)
class Inference:
    kind: InferenceKind
    name: Optional[str] = None


NO_MUTATION = Inference("none")


class MessageClassifier(Protocol):
    def classify(self, state: GameState, message: str) -> Inference:
        ...


class KeywordClassifier:
    """Dernier mot = nom, mot-clé "ready" = joueur prêt."""

    def classify(self, state: GameState, message: str) -> Inference:
        if state.game_started:
            return Inference("advance_turn")

        text = (message or "").rstrip()
        ready = READY_KEYWORD in text.lower()
        candidate = text.split()[-1] if text else ""
        # "I'm ready" ne doit pas inscrire un joueur nommé "ready"
        if len(candidate) > 1 and READY_KEYWORD not in candidate.lower() and not state.has_player(candidate):
            return Inference("add_player", name=candidate)
        if ready:
            return Inference("ready")
        return NO_MUTATION


DEFAULT_CLASSIFIER = KeywordClassifier()


def apply_user_message(
    state: GameState,
    message: str,
    classifier: Optional[MessageClassifier] = None,
) -> Inference:
    """Classe le message puis applique la mutation correspondante. Ne lève jamais sur une saisie."""
    inference = (classifier or DEFAULT_CLASSIFIER).classify(state, message)

    if inference.kind == "add_player" and inference.name:
        if state.has_player(inference.name):
            return NO_MUTATION
        state.add_player(inference.name)
    elif inference.kind == "ready":
        state.mark_last_introduced_ready()
        state.try_start_game()
    elif inference.kind == "advance_turn":
        state.advance_turn()

    if inference.kind != "none":
        logger.debug(
            "Game state updated from user message",
            extra={"session_id": state.session_id, "inference": inference.kind, "player_name": inference.name},
        )
    return inference
