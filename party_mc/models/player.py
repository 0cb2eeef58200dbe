"""
Models / player.py
Rôle:
- Définir la structure minimale d'un joueur de la partie.

Champs:
- name: nom annoncé dans le chat (unique, comparaison insensible à la casse).
- introduced: passe à True quand le joueur s'est déclaré prêt.
"""
from pydantic import BaseModel


class Player(BaseModel):
    """Joueur inscrit à la partie, dans l'ordre de passage."""
    name: str  # nom tel qu'extrait du message
    introduced: bool = False  # True une fois "ready" reçu pour ce joueur
