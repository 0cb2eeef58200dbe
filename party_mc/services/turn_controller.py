"""
Service: turn_controller.py
Rôle:
- Orchestration d'un tour de conversation complet (requête → flux de réponse).

Cycle d'un tour:
    IDLE → CLASSIFYING_INPUT → BUILDING_PROMPT → STREAMING → COMPLETED
                                                      ↘ ABORTED | FAILED

- CLASSIFYING_INPUT : modificateurs actifs (dernier message de contrôle, sinon défaut du
  catalogue) + inférence sur le dernier message humain.
- BUILDING_PROMPT : prompt système + historique sans messages `system`.
- STREAMING : une tâche "pompe" lit le flux du LLM et remplit une file ; l'appelant lit la
  file. La dernière réponse est enregistrée dans l'état PAR la pompe, avant le signal de
  fin de flux : un tour suivant ne peut pas voir un `last_ai_message` périmé une fois le
  flux précédent terminé.
- ABORTED : annulation explicite, nouveau tour sur la même session ou client déconnecté.
  Jamais journalisé comme une erreur, la réponse partielle n'est pas enregistrée.
- FAILED : toute autre erreur backend (journalisée), pas de retry.

Un seul tour en vol est suivi par session : démarrer un tour annule le précédent.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from party_mc.models.chat import ChatMessage
from .control_messages import conversation_for_backend, enabled_mods_from, latest_user_message
from .game_state import GameState
from .llm_engine import LLMClient, get_llm_client
from .message_inference import NO_MUTATION, Inference, MessageClassifier, apply_user_message
from .modifier_catalog import CATALOG, ModifierCatalog
from .prompt_builder import build_system_prompt
from .session_store import get_session_state, normalize_session_id

logger = logging.getLogger(__name__)


class TurnPhase(str, Enum):
    IDLE = "idle"
    CLASSIFYING_INPUT = "classifying_input"
    BUILDING_PROMPT = "building_prompt"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


TERMINAL_PHASES = {TurnPhase.COMPLETED, TurnPhase.ABORTED, TurnPhase.FAILED}

_END = object()


class CancellationHandle:
    """Poignée d'annulation d'un tour (une par tour, jamais réutilisée)."""

    def __init__(self) -> None:
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, task: asyncio.Task) -> None:
        self._task = task
        if self._cancelled:
            task.cancel()

    def cancel(self) -> bool:
        """Demande l'arrêt du flux. Renvoie False si le tour était déjà terminé."""
        if self._task is not None and self._task.done():
            return False
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()
        return True


class Turn:
    """Un tour de conversation : état du cycle, file de fragments, texte final."""

    def __init__(self, session_id: str, state: GameState) -> None:
        self.turn_id = uuid4().hex
        self.session_id = session_id
        self.state = state
        self.phase = TurnPhase.IDLE
        self.handle = CancellationHandle()
        self.enabled_mods: List[str] = []
        self.inference: Inference = NO_MUTATION
        self.system_prompt = ""
        self.conversation: List[dict] = []
        self.text = ""
        self.error: Optional[BaseException] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._pending: object = None
        self._has_output = False
        self._pump: Optional[asyncio.Task] = None

    def _log_extra(self, **fields) -> dict:
        return {"turn_id": self.turn_id, "session_id": self.session_id, **fields}

    @property
    def done(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def has_output(self) -> bool:
        """True dès qu'un fragment de texte a été reçu (le flux HTTP peut commencer)."""
        return self._has_output

    # -----------------------------
    # Pompe (côté backend)
    # -----------------------------
    def start(self, backend: LLMClient, on_done: Optional[Callable[["Turn"], None]] = None) -> None:
        self.phase = TurnPhase.STREAMING
        self._pump = asyncio.create_task(self._pump_stream(backend))
        self._pump.add_done_callback(self._on_pump_done)
        if on_done is not None:
            self._pump.add_done_callback(lambda _task: on_done(self))
        self.handle.bind(self._pump)

    def _on_pump_done(self, task: asyncio.Task) -> None:
        # une tâche annulée avant sa première étape n'exécute jamais _pump_stream
        if task.cancelled() and not self.done:
            self.phase = TurnPhase.ABORTED
            logger.info("Turn aborted", extra=self._log_extra(partial_chars=0))
        self._queue.put_nowait(_END)

    async def _pump_stream(self, backend: LLMClient) -> None:
        parts: List[str] = []
        try:
            async for delta in backend.stream_chat(self.system_prompt, self.conversation, request_id=self.turn_id):
                parts.append(delta)
                self._queue.put_nowait(delta)
            self.text = "".join(parts)
            self.state.record_last_message(self.text)
            self.phase = TurnPhase.COMPLETED
            logger.info("Turn completed", extra=self._log_extra(reply_chars=len(self.text)))
        except asyncio.CancelledError:
            self.phase = TurnPhase.ABORTED
            logger.info("Turn aborted", extra=self._log_extra(partial_chars=sum(len(p) for p in parts)))
            raise
        except Exception as exc:
            self.phase = TurnPhase.FAILED
            self.error = exc
            logger.exception("Turn failed", extra=self._log_extra())

    # -----------------------------
    # Lecture (côté client)
    # -----------------------------
    async def wait_started(self) -> TurnPhase:
        """Attend le premier fragment ou la fin du tour ; renvoie la phase courante."""
        try:
            self._pending = await self._queue.get()
            self._has_output = self._pending is not _END
        except asyncio.CancelledError:
            self.handle.cancel()
            raise
        return self.phase

    async def iter_text(self) -> AsyncIterator[str]:
        """Fragments de réponse, dans l'ordre. S'arrête net si le tour est annulé."""
        try:
            item = self._pending if self._pending is not None else await self._queue.get()
            self._pending = None
            while item is not _END:
                yield item
                item = await self._queue.get()
        finally:
            if self._pump is not None and not self._pump.done():
                # client parti en cours de flux
                self.handle.cancel()

    async def wait_closed(self) -> TurnPhase:
        """Attend la fin de la pompe (sans consommer les fragments)."""
        if self._pump is not None:
            await asyncio.gather(self._pump, return_exceptions=True)
        return self.phase


BackendFactory = Callable[[], LLMClient]
Watcher = Callable[[CancellationHandle], Awaitable[None]]


class TurnController:
    """Point d'entrée des tours : un tour en vol au plus par session."""

    def __init__(
        self,
        backend_factory: BackendFactory = get_llm_client,
        catalog: ModifierCatalog = CATALOG,
        classifier: Optional[MessageClassifier] = None,
    ) -> None:
        self.backend_factory = backend_factory
        self.catalog = catalog
        self.classifier = classifier
        self._inflight: Dict[str, CancellationHandle] = {}

    def _replace_inflight(self, session_id: str, turn: Turn) -> None:
        previous = self._inflight.get(session_id)
        if previous is not None and previous.cancel():
            logger.info("Previous turn superseded", extra={"session_id": session_id, "turn_id": turn.turn_id})
        self._inflight[session_id] = turn.handle

    def _release(self, session_id: str, handle: CancellationHandle) -> None:
        if self._inflight.get(session_id) is handle:
            self._inflight.pop(session_id, None)

    def prepare_turn(self, messages: Sequence[ChatMessage], session_id: Optional[str] = None) -> Turn:
        """Phases synchrones du tour : inférence puis construction du prompt."""
        sid = normalize_session_id(session_id)
        turn = Turn(sid, get_session_state(sid))

        turn.phase = TurnPhase.CLASSIFYING_INPUT
        turn.enabled_mods = enabled_mods_from(messages, self.catalog.default_enabled_ids())
        turn.state.record_enabled_mods(turn.enabled_mods)
        latest = latest_user_message(messages)
        if latest is not None:
            turn.inference = apply_user_message(turn.state, latest.content, self.classifier)

        turn.phase = TurnPhase.BUILDING_PROMPT
        turn.system_prompt = build_system_prompt(turn.state.snapshot(), turn.enabled_mods)
        turn.conversation = conversation_for_backend(messages)
        return turn

    async def open_turn(
        self,
        messages: Sequence[ChatMessage],
        session_id: Optional[str] = None,
        watcher: Optional[Watcher] = None,
    ) -> Turn:
        """
        Prépare le tour, lance l'appel backend et attend le premier fragment.
        Le tour renvoyé est soit en STREAMING (ou déjà COMPLETED), soit ABORTED/FAILED
        sans aucun texte émis.

        `watcher(handle)` tourne pendant l'attente du premier fragment (ex: détection de
        déconnexion du client) et peut annuler le tour via la poignée.
        """
        turn = self.prepare_turn(messages, session_id)
        logger.info(
            "Turn started",
            extra={
                "turn_id": turn.turn_id,
                "session_id": turn.session_id,
                "inference": turn.inference.kind,
                "enabled_mods": turn.enabled_mods,
            },
        )
        self._replace_inflight(turn.session_id, turn)
        turn.start(self.backend_factory(), on_done=lambda t: self._release(t.session_id, t.handle))
        watch_task = asyncio.create_task(watcher(turn.handle)) if watcher is not None else None
        try:
            await turn.wait_started()
        finally:
            if watch_task is not None:
                watch_task.cancel()
        return turn

    def cancel(self, session_id: Optional[str] = None) -> bool:
        """Annule le tour en vol de la session. False s'il n'y en avait pas."""
        sid = normalize_session_id(session_id)
        handle = self._inflight.get(sid)
        if handle is None:
            return False
        return handle.cancel()

    def has_inflight(self, session_id: Optional[str] = None) -> bool:
        return normalize_session_id(session_id) in self._inflight


TURNS = TurnController()
