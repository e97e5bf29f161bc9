from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from relay_control.core.models import WarmupPlan


class WarmupStatusResponse(BaseModel):
    sender_id: int
    email: str
    domain: str
    enabled: bool
    plan: WarmupPlan
    day: int
    total_days: int
    current_rate: str
    last_update: Optional[datetime] = None


class WarmupUpdateRequest(BaseModel):
    enabled: bool
    plan: Optional[WarmupPlan] = None


class WarmupUpdateResponse(BaseModel):
    status: str
    sender: WarmupStatusResponse
