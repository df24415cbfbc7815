import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from modeforge.backend import Backend
from modeforge.entities import CamelModel
from modeforge.errors import BuildError, NotFoundError, ParseError
from modeforge.job_worker import JobWorker

logger = logging.getLogger("modeforge")


class RequestModel(CamelModel):
    """Accepts both deviceType and device_type; unknown keys pass through."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class GenerateModuleRequest(RequestModel):
    device_type: str
    features: List[Any] = Field(default_factory=list)
    hardware_profile: Optional[Any] = None
    user_profile: Optional[Any] = None
    description: Optional[str] = None
    data_fields: Optional[List[Any]] = None


class GenerateWidgetRequest(RequestModel):
    device_type: str
    description: Optional[str] = None
    data_fields: List[Any] = Field(default_factory=list)
    hardware_profile: Optional[Any] = None
    user_profile: Optional[Any] = None


class AutoWidgetRequest(RequestModel):
    feature_name: str
    widget_type: Optional[str] = None
    data_field: Optional[str] = None
    description: Optional[str] = None


class FeasibilityRequest(RequestModel):
    device_name: str = ""
    purpose: str = ""
    hardware: Optional[Any] = None
    refinements: Optional[str] = None


class ActivateRequest(RequestModel):
    mode_id: str
    device_id: Optional[str] = None


class UpdateMyModeRequest(RequestModel):
    status: Optional[str] = None
    tags: Optional[List[str]] = None
    name: Optional[str] = None


class UpdateParametersRequest(RequestModel):
    updates: Dict[str, Any] = Field(default_factory=dict)


def _error(status: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error, **extra})


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, str(exc) or "Not found")

    @app.exception_handler(BuildError)
    async def build_error_handler(request: Request, exc: BuildError):
        logger.error(f"[BUILD] Build failed for {request.url.path}: {exc.output}")
        return _error(500, "Build Failed", details=exc.output)

    @app.exception_handler(ParseError)
    async def parse_error_handler(request: Request, exc: ParseError):
        return _error(500, str(exc) or "Failed to parse parameters")

    @app.exception_handler(FileNotFoundError)
    async def missing_file_handler(request: Request, exc: FileNotFoundError):
        return _error(500, str(exc) or "File missing")

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error(400, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error(500, str(exc) or exc.__class__.__name__)


def build_router(backend: Backend, worker: JobWorker) -> APIRouter:
    router = APIRouter()

    # -----------------------
    # modules
    # -----------------------

    @router.post("/modules/generate", status_code=202)
    async def generate_module(req: GenerateModuleRequest):
        message = backend.create_generation_job(req.model_dump())
        await worker.submit(message)
        return {"success": True, "jobId": message.job_id, "job_id": message.job_id}

    @router.get("/modules/status")
    def module_status(job_id: Optional[str] = None, job_id_camel: Optional[str] = Query(None, alias="jobId")):
        wanted = job_id_camel or job_id
        if not wanted:
            return _error(400, "job_id is required")
        return backend.job_status(wanted)

    @router.get("/modules/check")
    def check_module(device_type: str = ""):
        return backend.check_module(device_type)

    # -----------------------
    # widgets
    # -----------------------

    @router.post("/widgets/generate")
    def generate_widget(req: GenerateWidgetRequest):
        return backend.handle_generate_widget(req.model_dump())

    @router.post("/widgets/auto-generate")
    def auto_generate_widget(req: AutoWidgetRequest):
        return backend.handle_auto_widget(req.model_dump())

    # -----------------------
    # catalog / wizard / activation
    # -----------------------

    @router.get("/modes")
    def list_modes(category: Optional[str] = None, featured: Optional[bool] = None, search: Optional[str] = None):
        return backend.list_catalog(category=category, featured=featured, search=search)

    @router.post("/modes/feasibility")
    def feasibility(req: FeasibilityRequest):
        try:
            return backend.handle_feasibility(req.model_dump())
        except Exception as e:
            logger.error(f"[WIZARD] Feasibility analysis failed: {e}")
            return JSONResponse(status_code=500, content={"possible": False, "reasoning": "AI Analysis Failed"})

    @router.post("/modes/use-cases")
    def use_cases(req: FeasibilityRequest):
        try:
            return backend.handle_use_cases(req.model_dump())
        except Exception as e:
            logger.error(f"[WIZARD] Use-case suggestion failed: {e}")
            return JSONResponse(status_code=500, content={"use_cases": []})

    @router.post("/modes/activate")
    def activate_mode(req: ActivateRequest):
        return backend.handle_activate(req.mode_id)

    @router.get("/modes/{mode_id}")
    def get_mode(mode_id: str):
        return backend.get_catalog_mode(mode_id)

    @router.get("/modes/{smart_name}/parameters")
    def get_parameters(smart_name: str):
        return backend.get_parameters(smart_name)

    @router.post("/modes/{smart_name}/parameters")
    async def update_parameters(smart_name: str, req: UpdateParametersRequest):
        response, message = backend.update_parameters(smart_name, req.updates)
        await worker.submit(message)
        return response

    # -----------------------
    # my modes
    # -----------------------

    @router.get("/my-modes")
    def list_my_modes(status: Optional[str] = None, search: Optional[str] = None, tag: Optional[str] = None):
        return backend.list_my_modes(status=status, search=search, tag=tag)

    @router.get("/my-modes/{mode_id}")
    def get_my_mode(mode_id: str):
        return backend.get_my_mode(mode_id)

    @router.put("/my-modes/{mode_id}")
    def update_my_mode(mode_id: str, req: UpdateMyModeRequest):
        return backend.update_my_mode(mode_id, req.model_dump())

    @router.delete("/my-modes/{mode_id}")
    def delete_my_mode(mode_id: str, permanent: bool = False):
        return backend.delete_my_mode(mode_id, permanent=permanent)

    @router.post("/my-modes/{mode_id}/activate")
    def activate_my_mode(mode_id: str):
        return backend.activate_my_mode(mode_id)

    return router


def create_app(backend: Optional[Backend] = None) -> FastAPI:
    backend = backend or Backend()
    worker = JobWorker(backend.run_job, max_concurrent=backend.settings.JOB_WORKERS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await worker.start()
        try:
            yield
        finally:
            await worker.stop()

    app = FastAPI(title="UAD Mode Forge", lifespan=lifespan)
    app.state.backend = backend
    app.state.worker = worker

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Allow all origins for dev
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    app.include_router(build_router(backend, worker), prefix=backend.settings.API_PREFIX)

    @app.get("/health")
    def health():
        return {"status": "ok", "workers": worker.max_concurrent, "inFlight": worker.in_flight}

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
