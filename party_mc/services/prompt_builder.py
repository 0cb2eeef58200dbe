"""
Service: prompt_builder.py
- Rend l'état de la partie + les modificateurs actifs en instruction système pour le LLM.
- Fonction pure : aucun accès au store, aucune erreur possible.
"""
from typing import Any, Dict, Sequence

NOT_STARTED = "Not started"

PERSONA = (
    "You are the charismatic and entertaining MC of an AI-powered party game. "
    "Your role is to guide players through a fun and engaging experience, asking questions, "
    "giving challenges, and keeping the energy high."
)

RULES = """Remember:

1. If the game hasn't started, ask for player names one by one. Once you have at least two players and all introduced players have confirmed they're ready, start the game.
2. Once the game has started, challenge each player one at a time, in the order they were added.
3. Alternate between different types of challenges based on the enabled mods.
4. Keep track of players' names and use them in your responses.
5. Be encouraging, funny, and maintain a party atmosphere.
6. If players seem to be struggling or not enjoying a particular aspect, adapt and change the game direction.
7. Occasionally introduce fun twists or mini-games to keep things interesting.
8. End the game on a high note, thanking everyone for playing.
9. IMPORTANT: Do not repeat your last message. Always provide new content or challenges."""

CLOSING = (
    "Always maintain an upbeat, friendly tone, and be ready to explain rules or repeat "
    "instructions if players seem confused. Let's keep this party rolling!"
)


def build_system_prompt(snapshot: Dict[str, Any], enabled_mods: Sequence[str]) -> str:
    """Construit le prompt système à partir d'un `GameState.snapshot()`."""
    players = snapshot.get("players") or []
    names = ", ".join(p.get("name", "") for p in players)
    current = snapshot.get("current_player") or NOT_STARTED
    started = "true" if snapshot.get("game_started") else "false"
    last_message = snapshot.get("last_ai_message") or ""

    return (
        f"{PERSONA} The following mods are enabled: {', '.join(enabled_mods)}. "
        "Adjust your behavior and challenges based on these mods.\n\n"
        f"Current players: {names}\n"
        f"Current player: {current}\n"
        f"Game started: {started}\n\n"
        f"{RULES}\n\n"
        f'Last AI message: "{last_message}"\n\n'
        f"{CLOSING}"
    )
