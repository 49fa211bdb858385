import pytest
from pydantic import ValidationError

from ayuda.schemas.emergency import ChatRequest, ConversationMessage, EmergencyResponse
from ayuda.schemas.profile import UserProfile


def test_response_from_wire_with_only_required_field():
    resp = EmergencyResponse.model_validate({"response": "Mantén la calma."})
    assert resp.response_text == "Mantén la calma."
    assert resp.instructions == ()
    assert resp.should_call_emergency is False
    assert resp.severity is None
    assert resp.is_present("response_text")
    assert not resp.is_present("severity")
    assert not resp.is_present("should_call_emergency")


def test_response_null_fields_become_empty():
    resp = EmergencyResponse.model_validate(
        {"response": "x", "instructions": None, "shouldCallEmergency": None, "severity": "CRITICAL"}
    )
    assert resp.instructions == ()
    assert resp.should_call_emergency is False
    assert resp.severity == "critical"
    assert resp.is_present("severity")


def test_response_rejects_unknown_severity():
    with pytest.raises(ValidationError):
        EmergencyResponse.model_validate({"response": "x", "severity": "catastrophic"})


def test_response_to_wire():
    resp = EmergencyResponse(
        response_text="Quemadura superficial identificada.",
        instructions=("Enfriar con agua",),
        severity="low",
        category="burns",
        source="classifier",
    )
    assert resp.to_wire() == {
        "response": "Quemadura superficial identificada.",
        "instructions": ["Enfriar con agua"],
        "severity": "low",
        "shouldCallEmergency": False,
        "category": "burns",
        "followUpQuestions": [],
    }


def test_conversation_messages_get_unique_ids():
    a = ConversationMessage(role="user", text="hola")
    b = ConversationMessage(role="user", text="hola")
    assert a.id != b.id
    assert a.timestamp.tzinfo is not None


def test_chat_request_accepts_legacy_session_key():
    req = ChatRequest.model_validate({"text": "ayuda", "sesion_id": "session_1"})
    assert req.session_id == "session_1"
    assert req.to_wire() == {"text": "ayuda", "session_id": "session_1"}


def test_chat_request_rejects_blank_text():
    with pytest.raises(ValidationError):
        ChatRequest(text="  ", session_id="s")


def test_profile_allergies_are_deduplicated():
    profile = UserProfile.model_validate(
        {"fullName": "Ana", "allergies": ["Penicilina", " penicilina ", "Látex", ""]}
    )
    assert profile.allergies == ("Penicilina", "Látex")
    assert UserProfile(allergies="Polen, polen,Nueces").allergies == ("Polen", "Nueces")
    assert UserProfile(allergies=None).allergies == ()


def test_profile_to_wire_uses_camel_case():
    profile = UserProfile(full_name="Ana", blood_type="O+", allergies=["Látex"])
    assert profile.to_wire() == {"fullName": "Ana", "bloodType": "O+", "allergies": ["Látex"]}
