from typing import Any

from fastapi import APIRouter, Depends

from icebreaker.api.deps import get_orchestrator
from icebreaker.api.schemas import JobStatusResponse, TriggerRequest, TriggerResponse
from icebreaker.services.pipeline import Orchestrator

router = APIRouter(prefix="/api", tags=["collect"])

@router.post("/trigger", response_model=TriggerResponse)
async def trigger(payload: TriggerRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    job_id = await orchestrator.submit(payload.url_strings())
    return TriggerResponse(job_id=job_id)

@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job(job_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    status, staged = await orchestrator.check_status(job_id)
    return JobStatusResponse(job_id=job_id, status=status.value, staged=staged)

@router.get("/snapshot/{job_id}")
async def get_snapshot(job_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)) -> Any:
    return await orchestrator.fetch_result(job_id)
