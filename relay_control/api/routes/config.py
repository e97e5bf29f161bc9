
from fastapi import APIRouter, Depends, HTTPException

from relay_control.api.container import get_reconciler, get_repository
from relay_control.api.schemas.config import (
    ApplyResultResponse,
    ArtifactPreview,
    ConfigPreviewResponse,
)
from relay_control.core.errors import (
    ApplyError, GenerationError, RestartFailure, SnapshotError, ValidationFailure
)
from relay_control.core.snapshot import load_snapshot
from relay_control.generator.artifacts import generate_all


router = APIRouter(prefix="/config", tags=["config"])


def _error_detail(e: ApplyError) -> dict:
    detail = {"error": type(e).__name__, "message": str(e)}
    if e.result is not None:
        detail["result"] = e.result.to_dict()
    return detail


@router.get("/preview", response_model=ConfigPreviewResponse)
def preview_config(
    repository=Depends(get_repository),
    reconciler=Depends(get_reconciler),
):
    """Render all policy files without writing anything."""
    try:
        snapshot = load_snapshot(repository)
        artifacts = generate_all(snapshot, reconciler.paths)
    except (SnapshotError, GenerationError) as e:
        raise HTTPException(status_code=500, detail=_error_detail(e))

    return ConfigPreviewResponse(
        artifacts=[
            ArtifactPreview(name=a.kind.value, path=str(a.path), content=a.content)
            for a in artifacts
        ]
    )


@router.post("/apply", response_model=ApplyResultResponse)
def apply_config(reconciler=Depends(get_reconciler)):
    try:
        result = reconciler.apply()
    except ValidationFailure as e:
        raise HTTPException(status_code=422, detail=_error_detail(e))
    except RestartFailure as e:
        raise HTTPException(status_code=502, detail=_error_detail(e))
    except ApplyError as e:
        raise HTTPException(status_code=500, detail=_error_detail(e))

    return ApplyResultResponse(**result.to_dict())
