from fastapi import APIRouter, Depends

from icebreaker.api.deps import get_orchestrator
from icebreaker.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    IcebreakerResponse,
    TriggerRequest,
)
from icebreaker.core.errors import InvalidInput
from icebreaker.services.pipeline import Orchestrator


router = APIRouter(prefix="/api", tags=["insight"])

@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(req: AnalyzeRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    if not req.job_id:
        raise InvalidInput("Invalid job id provided for analysis.")
    insight = await orchestrator.analyze(req.job_id)
    return AnalyzeResponse(insight=insight)

@router.post("/icebreaker", response_model=IcebreakerResponse)
async def icebreaker(req: TriggerRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """Trigger, wait, analyze and clean up in a single request."""
    run = await orchestrator.run(req.url_strings())
    if run.error is not None:
        raise run.error
    return IcebreakerResponse(job_id=run.job_id, state=run.state.value, insight=run.insight)
