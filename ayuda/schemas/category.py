from pydantic import BaseModel
from typing import List, Optional


class EmergencyCategory(BaseModel):
    id: str
    title: str
    description: str
    rule: Optional[str] = None  # classifier rule with the first-aid guidance
    parent_id: Optional[str] = None  # set on subcategories
    subcategories: List["EmergencyCategory"] = []

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None
