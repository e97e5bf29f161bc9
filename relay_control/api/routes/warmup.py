import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from relay_control.api.container import get_reconciler, get_repository
from relay_control.api.schemas.warmup import (
    WarmupStatusResponse,
    WarmupUpdateRequest,
    WarmupUpdateResponse,
)
from relay_control.core.errors import ApplyError, RepositoryError
from relay_control.core.models import Sender
from relay_control.core.warmup import sender_rate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/warmup", tags=["warmup"])


def display_rate(sender: Sender) -> str:
    rate = sender_rate(sender)
    if rate:
        return rate
    # enabled but past the last day: the daily pass has not disabled it yet
    return "Complete" if sender.warmup_enabled else "Unlimited"


def _status(sender: Sender, domain_name: str) -> WarmupStatusResponse:
    return WarmupStatusResponse(
        sender_id=sender.id,
        email=sender.email,
        domain=domain_name,
        enabled=sender.warmup_enabled,
        plan=sender.warmup_plan,
        day=sender.warmup_day,
        total_days=len(sender.warmup_plan.rates),
        current_rate=display_rate(sender),
        last_update=sender.warmup_last_update,
    )


def _apply_in_background(reconciler) -> None:
    try:
        reconciler.apply()
    except ApplyError as e:
        logger.error(f"[warmup] apply after warmup change failed: {type(e).__name__}: {e}")


@router.get("", response_model=List[WarmupStatusResponse])
def list_warmup(repository=Depends(get_repository)):
    try:
        domains = repository.list_domains()
    except RepositoryError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return [
        _status(sender, domain.name)
        for domain in domains
        for sender in domain.senders
    ]


@router.post("/{sender_id}", response_model=WarmupUpdateResponse)
def update_warmup(
    sender_id: int,
    request: WarmupUpdateRequest,
    background_tasks: BackgroundTasks,
    repository=Depends(get_repository),
    reconciler=Depends(get_reconciler),
):
    sender = repository.get_sender(sender_id)
    if sender is None:
        raise HTTPException(status_code=404, detail="Sender not found")

    updated = replace(sender, warmup_enabled=request.enabled)
    if request.enabled:
        if request.plan is not None:
            updated = replace(updated, warmup_plan=request.plan)
        # First enable starts at day 1
        if updated.warmup_day == 0:
            updated = replace(
                updated,
                warmup_day=1,
                warmup_last_update=datetime.now(timezone.utc),
            )

    try:
        repository.update_sender(updated)
    except RepositoryError as e:
        raise HTTPException(status_code=500, detail=str(e))

    # Enforce the new rate now rather than at the next daily pass
    background_tasks.add_task(_apply_in_background, reconciler)

    domain_name = updated.email.split("@", 1)[-1]
    return WarmupUpdateResponse(status="updated", sender=_status(updated, domain_name))
