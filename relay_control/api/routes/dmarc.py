from typing import List

from fastapi import APIRouter, Depends, HTTPException

from relay_control.api.container import get_repository
from relay_control.api.schemas.dmarc import DMARCRecordResponse
from relay_control.core.errors import SnapshotError
from relay_control.core.snapshot import load_snapshot
from relay_control.dmarc.records import list_dmarc_records

router = APIRouter(prefix="/dmarc", tags=["dmarc"])


@router.get("/records", response_model=List[DMARCRecordResponse])
def list_records(repository=Depends(get_repository)):
    try:
        snapshot = load_snapshot(repository)
    except SnapshotError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return [
        DMARCRecordResponse(
            domain=r.domain,
            dns_name=r.dns_name,
            dns_value=r.dns_value,
            policy=r.policy,
        )
        for r in list_dmarc_records(snapshot)
    ]
