from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Tuple


class UserProfile(BaseModel):
    """Emergency profile forwarded with every chat request. Read-only to the core."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    full_name: Optional[str] = Field(default=None, alias="fullName")
    blood_type: Optional[str] = Field(default=None, alias="bloodType")
    allergies: Tuple[str, ...] = ()  # deduplicated, first spelling kept
    emergency_contact: Optional[str] = Field(default=None, alias="emergencyContact")

    @field_validator("allergies", mode="before")
    @classmethod
    def _dedupe_allergies(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        seen = set()
        out = []
        for item in value:
            name = str(item).strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                out.append(name)
        return tuple(out)

    def to_wire(self) -> dict:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["allergies"] = list(self.allergies)
        return data
