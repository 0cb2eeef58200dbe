"""
Configuration de l'application (Settings)
=========================================

Rôle
----
- Centraliser les paramètres du service (nom, host/port, niveau de log, backend LLM…).
- Les valeurs par défaut conviennent pour un environnement de dev local.
- Les variables peuvent être surchargées via un fichier `.env` ou l'environnement.

Intégrations
------------
- `pydantic-settings` charge automatiquement les variables d'env et `.env`.
- Les services/routers importent `from party_mc.config.settings import settings`.
- `require_backend_credentials()` est appelé au démarrage de l'app : une clé absente
  est une erreur fatale de configuration, jamais une erreur par requête.

Exemples de `.env`
------------------
APP_NAME="Party MC (Staging)"
PORT=8080
LOG_LEVEL="DEBUG"
OPENAI_API_KEY="sk-..."
LLM_MODEL="gpt-4o-mini"
LLM_BASE_URL="https://api.openai.com/v1"
STREAM_PROTOCOL="data"
"""
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Configuration invalide ou incomplète (fatale au démarrage)."""


class Settings(BaseSettings):
    # Nom du service (apparaît dans /health)
    APP_NAME: str = "Party MC Backend"
    # Bind réseau (FastAPI / Uvicorn)
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Backend de génération (API compatible OpenAI chat-completions)
    # ⚠️ Jamais de vraie clé dans le repo : passer par .env
    OPENAI_API_KEY: str = ""
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    # None = pas de timeout de lecture (le flux peut durer)
    LLM_TIMEOUT_SECONDS: Optional[float] = None
    LLM_CONNECT_TIMEOUT_SECONDS: float = 10.0

    # Format du flux renvoyé au client: "text" (brut) ou "data" (0:"..." par ligne)
    STREAM_PROTOCOL: Literal["text", "data"] = "text"

    # Session utilisée quand le client n'en précise pas
    DEFAULT_SESSION_ID: str = "default"

    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # - lit le fichier .env (UTF-8) si présent
    # - ignore les clés supplémentaires pour éviter les erreurs
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def require_backend_credentials(self) -> None:
        """Lève `ConfigurationError` si la clé du backend LLM est absente."""
        if not (self.OPENAI_API_KEY or "").strip():
            raise ConfigurationError("Missing OPENAI_API_KEY environment variable")


# Instance unique importable partout : `settings`
settings = Settings()
