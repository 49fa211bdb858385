import uuid
from datetime import datetime, timezone
from typing import Literal, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ayuda.schemas.profile import UserProfile

Severity = Literal["low", "medium", "high", "critical"]
Role = Literal["user", "system"]
ResponseSource = Literal["remote", "classifier", "apology"]


class EmergencyResponse(BaseModel):
    """
    Guidance for one utterance. Wire names follow the chat backend (`response`,
    `shouldCallEmergency`, ...). Optional fields a backend left out stay absent:
    check with is_present() instead of truthiness.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    response_text: str = Field(alias="response")
    instructions: Tuple[str, ...] = ()
    severity: Optional[Severity] = None
    should_call_emergency: bool = Field(default=False, alias="shouldCallEmergency")
    category: Optional[str] = None
    follow_up_questions: Tuple[str, ...] = Field(default=(), alias="followUpQuestions")
    source: ResponseSource = Field(default="remote", exclude=True)

    @field_validator("instructions", "follow_up_questions", mode="before")
    @classmethod
    def _null_to_empty(cls, value):
        return () if value is None else value

    @field_validator("should_call_emergency", mode="before")
    @classmethod
    def _null_to_false(cls, value):
        return False if value is None else value

    @field_validator("severity", mode="before")
    @classmethod
    def _lower_severity(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    def is_present(self, field: str) -> bool:
        """True if `field` was supplied when the response was built (by name or wire alias)."""
        return field in self.model_fields_set

    def to_wire(self) -> dict:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["instructions"] = list(self.instructions)
        data["followUpQuestions"] = list(self.follow_up_questions)
        return data


class ConversationMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Role
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChatRequest(BaseModel):
    """POST /chat body. `sesion_id` is the key older clients send."""

    text: str
    session_id: str = Field(validation_alias=AliasChoices("session_id", "sesion_id"))
    user_profile: Optional[UserProfile] = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value

    def to_wire(self) -> dict:
        data = {"text": self.text, "session_id": self.session_id}
        if self.user_profile is not None:
            data["user_profile"] = self.user_profile.to_wire()
        return data
