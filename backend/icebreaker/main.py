import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from icebreaker.api.collect import router as collect_router
from icebreaker.api.insight import router as insight_router
from icebreaker.core.config import Settings
from icebreaker.core.errors import PipelineError
from icebreaker.services.pipeline import Orchestrator, build_orchestrator
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Optional[Settings] = None, orchestrator: Optional[Orchestrator] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "orchestrator", None) is None:
            owned = build_orchestrator(settings)
            app.state.orchestrator = owned
        yield
        if owned is not None:
            await owned.aclose()
            app.state.orchestrator = None

    app = FastAPI(title="Icebreaker profile comparison service", lifespan=lifespan)
    app.state.orchestrator = orchestrator

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return JSONResponse(status_code=400, content={"error": f"Invalid input: {detail}"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(collect_router)
    app.include_router(insight_router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()


def run() -> None:
    settings = Settings.from_env()
    logger.info("Server is running on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
