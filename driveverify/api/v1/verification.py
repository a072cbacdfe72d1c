"""Folder verification endpoints — register jobs and poll their state."""

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

router = APIRouter()

# Set by main.py during lifespan
_orchestrator = None


def set_orchestrator(orchestrator):
    global _orchestrator
    _orchestrator = orchestrator


def _require_orchestrator():
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Verification service not initialized")
    return _orchestrator


class VerifyRequest(BaseModel):
    src_folder_url: str = ""
    dst_folder_url: str = ""


@router.post("/gdrive/verify")
async def verify(request: VerifyRequest):
    """Register a job checking that the destination folder copies the source.

    Returns immediately; poll GET /gdrive/verify/{id} for progress.
    """
    orchestrator = _require_orchestrator()
    result = await orchestrator.register(request.src_folder_url, request.dst_folder_url)
    if not result.success:
        return {"success": False, "message": result.message}
    status = await run_in_threadpool(orchestrator.get_state, result.job_id)
    return {"success": True, "status": status}


@router.get("/gdrive/verify/{job_id}")
def verify_status(job_id: str):
    """Current job record. Unknown or expired jobs have every field null."""
    orchestrator = _require_orchestrator()
    return orchestrator.get_state(job_id)
