"""
Service: game_state.py
Rôle :
- Stocker l'état de la partie pour une session donnée : joueurs (ordre = ordre de passage),
  pointeur de tour, drapeau de démarrage, dernière réponse du LLM, modificateurs actifs.
- Garantir les invariants :
  - noms de joueurs uniques (comparaison insensible à la casse),
  - `game_started` ne passe à True qu'avec >= 2 joueurs tous "introduced", et ne revient
    jamais à False (seul `reset()` recrée un état vierge),
  - `advance_turn()` ne divise jamais par zéro.

Pas de persistance : l'état vit le temps du process (voir session_store.py pour le
registre multi-sessions).
"""
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional

from party_mc.models.player import Player

MIN_PLAYERS_TO_START = 2


class DuplicatePlayerError(ValueError):
    """Un joueur portant déjà ce nom (casse ignorée) est inscrit."""


@dataclass
class GameState:
    session_id: str = "default"
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0
    game_started: bool = False
    last_ai_message: str = ""
    enabled_mods: List[str] = field(default_factory=list)

    # -----------------------------
    # Lecture
    # -----------------------------
    def snapshot(self) -> Dict[str, Any]:
        """Copie détachée de l'état (sûre à lire pendant qu'un autre tour écrit)."""
        with self._lock:
            return {
                "session_id": self.session_id,
                "players": [p.model_dump() for p in self.players],
                "current_player_index": self.current_player_index,
                "current_player": self.current_player_name(),
                "game_started": self.game_started,
                "last_ai_message": self.last_ai_message,
                "enabled_mods": list(self.enabled_mods),
            }

    def has_player(self, name: str) -> bool:
        target = (name or "").lower()
        with self._lock:
            return any(p.name.lower() == target for p in self.players)

    def current_player_name(self) -> Optional[str]:
        with self._lock:
            if 0 <= self.current_player_index < len(self.players):
                return self.players[self.current_player_index].name
            return None

    # -----------------------------
    # Mutations
    # -----------------------------
    def add_player(self, name: str) -> Player:
        """Ajoute un joueur (introduced=False) en fin de liste."""
        with self._lock:
            if self.has_player(name):
                raise DuplicatePlayerError(name)
            player = Player(name=name, introduced=False)
            self.players.append(player)
            return player

    def mark_last_introduced_ready(self) -> None:
        """Marque prêt le dernier inscrit : on présente les joueurs un par un."""
        with self._lock:
            if self.players:
                self.players[-1].introduced = True

    def try_start_game(self) -> bool:
        """Démarre la partie si l'invariant de démarrage est satisfait."""
        with self._lock:
            if not self.game_started:
                if len(self.players) >= MIN_PLAYERS_TO_START and all(p.introduced for p in self.players):
                    self.game_started = True
            return self.game_started

    def advance_turn(self) -> None:
        """Passe au joueur suivant (modulo). Sans effet avant le démarrage ou sans joueur."""
        with self._lock:
            if not self.game_started or not self.players:
                return
            self.current_player_index = (self.current_player_index + 1) % len(self.players)

    def record_last_message(self, text: str) -> None:
        with self._lock:
            self.last_ai_message = text or ""

    def record_enabled_mods(self, mod_ids: Iterable[str]) -> None:
        with self._lock:
            self.enabled_mods = list(mod_ids)

    def reset(self) -> None:
        """Réinitialise l'état (joueurs, tour, phase, dernier message)."""
        with self._lock:
            self.players = []
            self.current_player_index = 0
            self.game_started = False
            self.last_ai_message = ""
            self.enabled_mods = []
