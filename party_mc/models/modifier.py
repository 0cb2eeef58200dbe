"""
Models / modifier.py
Rôle:
- Décrire un modificateur de règles optionnel (ex: drinking_game, trivia_master).
"""
from pydantic import BaseModel


class Modifier(BaseModel):
    """Entrée du catalogue des modificateurs."""
    id: str  # identifiant stable, transmis dans les messages de contrôle
    name: str  # libellé affiché
    enabled: bool = False  # état par défaut
