"""
Service: modifier_catalog.py
Rôle:
- Charger en mémoire le référentiel des modificateurs de règles (catalogue statique).
- Exposer `CATALOG.get(id)`, `CATALOG.all()` et l'ensemble activé par défaut.

Fichier source:
- party_mc/data/modifiers.json → {"catalog":[{id,name,enabled}]}

Remarque:
- Le catalogue est en lecture seule : l'état "activé" courant vit côté client et
  arrive à chaque changement via un message de contrôle "Mods updated".
"""
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from party_mc.models.modifier import Modifier
from .io_utils import read_json

CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "modifiers.json"


class ModifierCatalog:
    """Catalogue statique des modificateurs, ordonné comme dans le fichier source.

    Exemple d'entrée:
    { "id": "trivia_master", "name": "Trivia Master", "enabled": false }
    """

    def __init__(self, path: Path = CATALOG_PATH):
        self.path = path
        self.catalog: Dict[str, Modifier] = {}
        self.load()

    def load(self) -> None:
        """Charge le JSON et indexe les modificateurs par id (ordre conservé)."""
        raw = read_json(self.path) or {"catalog": []}
        self.catalog = {m["id"]: Modifier(**m) for m in raw.get("catalog", [])}

    def get(self, modifier_id: str) -> Optional[Modifier]:
        """Retourne une copie de la fiche ou None si id inconnu."""
        found = self.catalog.get(modifier_id)
        return found.model_copy() if found else None

    def all(self) -> List[Modifier]:
        return [m.model_copy() for m in self.catalog.values()]

    def default_enabled_ids(self) -> List[str]:
        """Ids activés par défaut (utilisés tant qu'aucun message de contrôle n'est vu)."""
        return [m.id for m in self.catalog.values() if m.enabled]

    def names_for(self, ids: Iterable[str]) -> List[str]:
        """Libellés pour une liste d'ids; un id inconnu est renvoyé tel quel."""
        return [self.catalog[i].name if i in self.catalog else i for i in ids]


CATALOG = ModifierCatalog()
