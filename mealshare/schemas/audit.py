from typing import Optional
from uuid import UUID
from pydantic import AliasChoices, BaseModel, Field, UUID4
from datetime import datetime


class AuditEntry(BaseModel):
    id: UUID4
    actor_id: Optional[UUID] = None
    action: str
    target_id: UUID
    metadata: dict = Field(default_factory=dict, validation_alias=AliasChoices("details", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True
