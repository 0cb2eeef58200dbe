"""
Application FastAPI : point d'entrée
=====================================

Rôle
----
- Instancie l'app FastAPI, configure le CORS pour le front,
- Monte les routeurs (chat, état de partie, catalogue de mods, santé),
- Vérifie la configuration au démarrage : sans clé backend, l'app refuse de démarrer.

Notes
-----
- Les importations des routeurs sont explicites pour éviter les surprises d'auto-discovery.
- Garder `settings.ALLOWED_ORIGINS` en phase avec les URLs du front.
- ⚠️ Le middleware CORS doit être ajouté AVANT les include_router.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from party_mc.routes.chat import router as chat_router
from party_mc.routes.game import router as game_router
from party_mc.routes.health import router as health_router
from party_mc.routes.mods import router as mods_router

from party_mc.config.settings import settings

logger = logging.getLogger("party_mc")

# --- App FastAPI principale  ---
app = FastAPI(title="Party MC Backend")

# ===========================
# CORS (dev: permissif)
# ===========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Turn-Id", "X-Session-Id"],
)

# ===========================
# Montage des routers
# ===========================
app.include_router(chat_router)
app.include_router(game_router)
app.include_router(mods_router)
app.include_router(health_router)


# --- Racine utile pour "ping" simple (sans /health) ---
@app.get("/")
async def root():
    """Ping basique : permet de vérifier que l'app tourne (sans dépendance LLM)."""
    return {"ok": True, "service": "party-mc-backend"}


# --- Hook de démarrage ---
@app.on_event("startup")
async def check_configuration():
    """
    Au démarrage:
    - configure le niveau de log,
    - exige la clé du backend LLM (ConfigurationError sinon : démarrage interrompu),
    - affiche la config LLM courante (modèle, endpoint).
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings.require_backend_credentials()
    logger.info("LLM config: model=%s base_url=%s", settings.LLM_MODEL, settings.LLM_BASE_URL)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
