from typing import List

from fastapi import APIRouter, Depends, HTTPException

from relay_control.api.container import get_paths, get_repository
from relay_control.api.schemas.dkim import DKIMRecordResponse
from relay_control.core.errors import SnapshotError
from relay_control.core.snapshot import load_snapshot
from relay_control.dkim.records import list_dkim_dns_records

router = APIRouter(prefix="/dkim", tags=["dkim"])


@router.get("/records", response_model=List[DKIMRecordResponse])
def list_records(
    repository=Depends(get_repository),
    paths=Depends(get_paths),
):
    try:
        snapshot = load_snapshot(repository)
    except SnapshotError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return [
        DKIMRecordResponse(
            domain=r.domain,
            selector=r.selector,
            dns_name=r.dns_name,
            dns_value=r.dns_value,
        )
        for r in list_dkim_dns_records(snapshot, paths.dkim_dir)
    ]
