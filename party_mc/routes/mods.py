"""
Module routes/mods.py
Rôle:
- Exposer le catalogue statique des modificateurs (le client gère l'activation et la
  renvoie via un message de contrôle "Mods updated").
"""
from typing import List

from fastapi import APIRouter, HTTPException

from party_mc.models.modifier import Modifier
from party_mc.services.modifier_catalog import CATALOG

router = APIRouter(prefix="/mods", tags=["mods"])


@router.get("", response_model=List[Modifier])
async def list_mods():
    """Catalogue complet, dans l'ordre d'affichage, avec l'état par défaut."""
    return CATALOG.all()


@router.get("/defaults")
async def default_mods():
    """Ids (et libellés) activés tant qu'aucun message de contrôle n'a été reçu."""
    enabled = CATALOG.default_enabled_ids()
    return {"enabled": enabled, "names": CATALOG.names_for(enabled)}


@router.get("/{mod_id}", response_model=Modifier)
async def get_mod(mod_id: str):
    found = CATALOG.get(mod_id)
    if found is None:
        raise HTTPException(status_code=404, detail="mod_not_found")
    return found
