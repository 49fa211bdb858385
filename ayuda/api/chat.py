"""
Chat API: the backend the conversation manager talks to.
Classifies each utterance with the keyword rules; a follow-up that says nothing
new on its own is classified together with the session's earlier utterances.
"""
import logging
from collections import OrderedDict
from typing import List, Optional

from fastapi import APIRouter

from ayuda.config import settings
from ayuda.core.classifier import classify_follow_up
from ayuda.schemas.emergency import ChatRequest, EmergencyResponse
from ayuda.schemas.profile import UserProfile

router = APIRouter()
logger = logging.getLogger(__name__)

# In-memory utterances per session (session_id -> user texts), least recently used first.
# Capped at settings.chat_session_limit. Use Redis/DB in production.
_session_utterances: "OrderedDict[str, List[str]]" = OrderedDict()


def _utterances_for(session_id: str) -> List[str]:
    earlier = _session_utterances.get(session_id)
    if earlier is None:
        earlier = _session_utterances[session_id] = []
        while len(_session_utterances) > settings.chat_session_limit:
            evicted, _ = _session_utterances.popitem(last=False)
            logger.info("Evicted idle chat session %s", evicted)
    else:
        _session_utterances.move_to_end(session_id)
    return earlier


def _profile_notes(profile: Optional[UserProfile]) -> List[str]:
    """Lines for the responders, taken from the user's emergency profile."""
    if profile is None:
        return []
    notes = []
    if profile.allergies:
        notes.append(f"Informa al personal médico de las alergias: {', '.join(profile.allergies)}")
    if profile.blood_type:
        notes.append(f"Tipo de sangre: {profile.blood_type}")
    if profile.emergency_contact:
        notes.append(f"Avisa al contacto de emergencia: {profile.emergency_contact}")
    return notes


def answer(request: ChatRequest) -> EmergencyResponse:
    earlier = _utterances_for(request.session_id)
    reply = classify_follow_up(earlier, request.text)
    earlier.append(request.text)

    notes = _profile_notes(request.user_profile)
    if reply.should_call_emergency and notes:
        reply = reply.model_copy(update={"instructions": reply.instructions + tuple(notes)})
    logger.info(
        "Session %s: %s (%s, call=%s)",
        request.session_id, reply.category or "unclassified", reply.severity, reply.should_call_emergency,
    )
    return reply


def forget_session(session_id: str) -> None:
    _session_utterances.pop(session_id, None)


@router.post("")
async def chat(request: ChatRequest):
    """Returns {response, instructions, shouldCallEmergency, severity, category, followUpQuestions}."""
    return answer(request).to_wire()


@router.delete("/{session_id}")
async def end_session(session_id: str):
    forget_session(session_id)
    return {"session_id": session_id, "status": "closed"}
