"""
Module routes/health.py
Rôle:
- Endpoints de santé (service OK + ping LLM).

Intégrations:
- settings: nom d'app + paramètres LLM.
- llm_engine: sonde courte du backend (latence, échantillon).
"""
from fastapi import APIRouter
import time

from party_mc.config.settings import settings
from party_mc.services.llm_engine import get_llm_client

router = APIRouter(prefix="/health", tags=["health"])

PING_SYSTEM = "You are a health check. Answer with a single word."


@router.get("")
async def health():
    """Renvoie un OK minimal avec le nom de service configuré."""
    return {"ok": True, "service": settings.APP_NAME}


@router.get("/llm")
async def health_llm():
    """
    Vérifie la disponibilité du LLM en mesurant une latence simple.
    - Prompt court ("Reply: pong.") pour minimiser le temps de calcul.
    - Retourne modèle, latence en secondes et un aperçu (sample).
    """
    t0 = time.perf_counter()
    try:
        text = await get_llm_client().complete(PING_SYSTEM, [{"role": "user", "content": "Reply: pong."}])
        dt = time.perf_counter() - t0
        return {
            "ok": True,
            "model": settings.LLM_MODEL,
            "latency_s": round(dt, 3),
            "sample": text[:120]  # ← coupe l'aperçu
        }
    except Exception as e:
        dt = time.perf_counter() - t0
        return {
            "ok": False,
            "model": settings.LLM_MODEL,
            "latency_s": round(dt, 3),
            "error": str(e)
        }
