from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, HttpUrl


class ToggleApiSchema(BaseModel):
    enabled: bool


class UpdateDomainSchema(BaseModel):
    domain: HttpUrl


class ApiSettingsOut(BaseModel):
    id: UUID
    user_id: UUID
    api_enabled: bool
    api_token: Optional[str] = None
    domain: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

