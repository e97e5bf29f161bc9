from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class ArtifactPreview(BaseModel):
    name: str
    path: str
    content: str


class ConfigPreviewResponse(BaseModel):
    artifacts: List[ArtifactPreview]


class ApplyResultResponse(BaseModel):
    run_id: UUID
    state: str
    sources_path: str
    queues_path: str
    listener_domains_path: str
    dkim_data_path: str
    init_lua_path: str
    validation_ok: bool
    validation_log: str
    restart_ok: bool
    restart_log: str
    changed_paths: List[str]
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
