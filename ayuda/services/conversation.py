"""
Conversation manager: owns the session id and message history, forwards each
utterance to the chat backend and falls back to a local answer whenever the
backend cannot be used. Construct one per app and pass it to whoever needs it.
"""
import asyncio
import logging
import time
import uuid
from typing import Dict, List, Optional, Tuple

import httpx

from ayuda.config import Settings, settings
from ayuda.core.categories import find_category
from ayuda.core.classifier import classify_follow_up, normalize
from ayuda.core.guardrails import check_utterance
from ayuda.schemas.category import EmergencyCategory
from ayuda.schemas.emergency import ChatRequest, ConversationMessage, EmergencyResponse, Role
from ayuda.schemas.profile import UserProfile

logger = logging.getLogger(__name__)

APOLOGY_TEXT = (
    "Estamos teniendo dificultades técnicas. Intenta de nuevo en un momento "
    "o llama directamente a los servicios de emergencia."
)


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class ConversationManager:
    def __init__(
        self,
        config: Settings = settings,
        client: Optional[httpx.AsyncClient] = None,
        profile: Optional[UserProfile] = None,
    ):
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.backend_timeout_seconds)
        self._owns_client = client is None
        self.profile = profile
        self.category: Optional[EmergencyCategory] = None
        self._session_id = new_session_id()
        self._history: List[ConversationMessage] = []
        self._in_flight: Dict[Tuple[str, str], asyncio.Task] = {}

    @property
    def session_id(self) -> str:
        return self._session_id

    def get_session_id(self) -> str:
        return self._session_id

    @property
    def history(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._history)

    async def send_message(self, text: str, profile: Optional[UserProfile] = None) -> EmergencyResponse:
        """
        Record the utterance, ask the backend, record and return the reply.
        Never raises for backend problems: those produce a local fallback reply.
        """
        is_valid, prompt = check_utterance(text)
        if not is_valid:
            logger.info("Unusable utterance %r; asking the user to repeat", text)
            return EmergencyResponse(response_text=prompt, source="classifier")

        key = (self._session_id, normalize(text))
        pending = self._in_flight.get(key)
        if pending is not None:
            logger.info("Same utterance already in flight for %s; sharing its reply", self._session_id)
            return await asyncio.shield(pending)

        # recorded before the exchange is scheduled, so a reset cannot land in between
        earlier = [m.text for m in self._history if m.role == "user"]
        self._append("user", text)

        task = asyncio.ensure_future(self._exchange(text, profile or self.profile, self._session_id, earlier))
        self._in_flight[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        # shielded: a cancelled caller must not cancel the reply other callers share
        return await asyncio.shield(task)

    def reset_session(self) -> None:
        """Start over with a fresh session id and an empty history. The profile is kept."""
        old = self._session_id
        new = new_session_id()
        while new == old:
            new = new_session_id()
        self._session_id = new
        self._history = []
        self.category = None
        logger.info("Session reset: %s -> %s", old, new)

    def begin_category(self, category_id: str) -> Optional[EmergencyCategory]:
        """Select a category; a top-level category starts a new session."""
        category = find_category(category_id)
        if category is None:
            logger.warning("Unknown emergency category %r", category_id)
            return None
        if category.is_top_level:
            self.reset_session()
        self.category = category
        return category

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ConversationManager":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    def _forget(self, key: Tuple[str, str], task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _exchange(
        self, text: str, profile: Optional[UserProfile], session_id: str, earlier: List[str]
    ) -> EmergencyResponse:
        reply = await self._post(text, profile, session_id)
        if reply is None:
            reply = self._fallback(earlier, text)

        if session_id != self._session_id:
            logger.info("Dropping reply for stale session %s", session_id)
            return reply
        self._append("system", reply.response_text)
        return reply

    async def _post(self, text: str, profile: Optional[UserProfile], session_id: str) -> Optional[EmergencyResponse]:
        url = self._config.backend_base_url.rstrip("/") + "/chat"
        payload = ChatRequest(text=text, session_id=session_id, user_profile=profile).to_wire()
        try:
            r = await self._client.post(url, json=payload, timeout=self._config.backend_timeout_seconds)
            r.raise_for_status()
            return EmergencyResponse.model_validate(r.json())
        except httpx.TimeoutException:
            logger.warning("Chat backend timed out after %ss", self._config.backend_timeout_seconds)
        except httpx.HTTPError as e:
            logger.warning("Chat backend request failed: %s", e)
        except ValueError as e:
            # invalid JSON, or a body that is not a chat reply (pydantic ValidationError is a ValueError)
            logger.warning("Chat backend returned an unusable body: %s", e)
        except Exception:
            logger.exception("Unexpected error calling the chat backend")
        return None

    def _fallback(self, earlier: List[str], text: str) -> EmergencyResponse:
        if self._config.fallback_mode == "apology":
            return EmergencyResponse(response_text=APOLOGY_TEXT, source="apology")
        return classify_follow_up(earlier, text)

    def _append(self, role: Role, text: str) -> None:
        self._history.append(ConversationMessage(role=role, text=text))
