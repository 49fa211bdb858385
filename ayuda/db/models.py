from sqlalchemy import Column, String, DateTime
from sqlalchemy.ext.declarative import declarative_base
from datetime import datetime

from ayuda.schemas.profile import UserProfile

Base = declarative_base()


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)  # chosen by the client (device id, user name, ...)
    full_name = Column(String, nullable=True)
    blood_type = Column(String, nullable=True)
    allergies = Column(String, default="")  # comma-separated
    emergency_contact = Column(String, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_schema(self) -> UserProfile:
        return UserProfile(
            full_name=self.full_name,
            blood_type=self.blood_type,
            allergies=self.allergies or "",
            emergency_contact=self.emergency_contact,
        )

    def update_from(self, profile: UserProfile) -> None:
        self.full_name = profile.full_name
        self.blood_type = profile.blood_type
        self.allergies = ",".join(profile.allergies)
        self.emergency_contact = profile.emergency_contact
