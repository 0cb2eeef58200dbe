"""
Utilitaires IO JSON (rapides) basés sur orjson.
- read_json(Path)  → Any | None (None si fichier manquant)
- dumps_text(data) → str (encodage JSON compact, utilisé pour le framing du flux)

Attention:
- orjson renvoie/attend des bytes; on lit en mode binaire.
"""
import orjson as json
from pathlib import Path
from typing import Any


def read_json(path: Path) -> Any:
    """Lit un fichier JSON (ou None s'il n'existe pas)."""
    if not path.exists():
        return None
    with path.open("rb") as f:
        return json.loads(f.read())


def dumps_text(data: Any) -> str:
    """Sérialise en JSON compact et renvoie une chaîne UTF-8."""
    return json.dumps(data).decode("utf-8")
