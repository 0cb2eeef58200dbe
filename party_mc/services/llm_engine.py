"""
Service: llm_engine.py
- Centralise les appels vers le backend de génération (API compatible OpenAI chat-completions).
- Diffuse la réponse en flux (SSE `data: {...}`) morceau par morceau.

Fonctions principales:
- LLMClient.stream_chat(system, messages): générateur async des fragments de texte.
- LLMClient.complete(system, messages): texte complet (sonde /health/llm).

Pas de retry : un échec du backend fait échouer le tour. L'annulation (asyncio) n'est
jamais convertie en `LLMServiceError`, elle remonte telle quelle à l'appelant.
"""
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional
from uuid import uuid4

import httpx

from party_mc.config.settings import Settings, settings

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


class LLMServiceError(RuntimeError):
    """Erreur encapsulant un échec de communication avec le LLM."""


def parse_sse_line(line: str, *, request_id: str = "") -> Optional[str]:
    """
    Extrait le fragment de texte d'une ligne SSE.
    Renvoie SSE_DONE en fin de flux, None pour les lignes sans contenu.
    """
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    data = line[len(SSE_DATA_PREFIX):].strip()
    if data == SSE_DONE:
        return SSE_DONE
    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        logger.warning(
            "Skipping invalid JSON line from LLM stream",
            extra={"llm_request_id": request_id, "llm_line": data[:200]},
        )
        return None
    choices = chunk.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    return delta.get("content") or None


class LLMClient:
    """
    Client HTTP du backend LLM.
    - Un `httpx.AsyncClient` par appel (pas d'état lié à une boucle d'événements).
    - Journalise chaque requête avec un identifiant de corrélation.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        api_key: str = "",
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout = timeout or httpx.Timeout(None, connect=10.0)
        self.transport = transport

    @classmethod
    def from_settings(cls, conf: Settings) -> "LLMClient":
        return cls(
            conf.LLM_BASE_URL,
            conf.LLM_MODEL,
            api_key=conf.OPENAI_API_KEY,
            timeout=httpx.Timeout(conf.LLM_TIMEOUT_SECONDS, connect=conf.LLM_CONNECT_TIMEOUT_SECONDS),
        )

    @property
    def chat_endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "text/event-stream"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _payload(self, system: str, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "system", "content": system}, *messages],
            "stream": True,
        }

    async def stream_chat(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        *,
        request_id: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """Envoie l'instruction système + l'historique et produit les fragments de réponse."""
        request_id = request_id or f"chat-{uuid4().hex}"
        url = self.chat_endpoint
        logger.debug("LLM stream start", extra={"llm_url": url, "llm_request_id": request_id})
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                async with client.stream(
                    "POST", url, json=self._payload(system, messages), headers=self._headers()
                ) as response:
                    response.raise_for_status()
                    async for line in response.aiter_lines():
                        delta = parse_sse_line(line, request_id=request_id)
                        if delta == SSE_DONE:
                            break
                        if delta:
                            yield delta
        except httpx.TimeoutException as exc:
            logger.warning("LLM request timeout", extra={"llm_url": url, "llm_request_id": request_id})
            raise LLMServiceError("LLM request timed out") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "LLM request rejected",
                extra={
                    "llm_url": url,
                    "llm_request_id": request_id,
                    "llm_status": exc.response.status_code,
                },
            )
            raise LLMServiceError(f"LLM request failed with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error(
                "LLM request failed",
                exc_info=True,
                extra={"llm_url": url, "llm_request_id": request_id},
            )
            raise LLMServiceError("LLM request failed") from exc
        logger.debug("LLM stream success", extra={"llm_request_id": request_id})

    async def complete(self, system: str, messages: List[Dict[str, Any]]) -> str:
        """Concatène le flux complet (utilisé pour les sondes de santé)."""
        parts: List[str] = []
        async for delta in self.stream_chat(system, messages):
            parts.append(delta)
        return "".join(parts)


CLIENT = LLMClient.from_settings(settings)


def get_llm_client() -> LLMClient:
    return CLIENT
