from fastapi import Request

from icebreaker.services.pipeline import Orchestrator


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator
