"""
Catalog Query API

Read-only HTTP façade over a JobRepository.

Endpoints (all under /api):
- GET  /health                       - Liveness, no auth
- POST /jobs/search                  - Paginated search
- POST /jobs/export                  - Search results as CSV
- GET  /jobs/{job_id}                - Job detail
- GET  /jobs/{job_id}/graph          - Direct dependency graph
- GET  /jobs/{job_id}/graph/end-to-end - Transitive dependency graph
- GET  /dashboard/stats              - Catalog aggregates
- GET  /filters                      - Filter options
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from ..config import get_config
from ..errors import CatalogStoreError
from ..storage.job_repository import JobRepository, JobSearchRequest
from .schemas import ApiResponse, JobSearchBody

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiResponse.fail(message).model_dump())


def create_app(repository: JobRepository, api_token: Optional[str] = None) -> FastAPI:
    """
    Build the API application.

    When api_token is set, every route except /api/health requires
    `Authorization: Bearer <api_token>`.
    """
    app = FastAPI(title="Control-M Catalog API")
    app.state.repository = repository

    def require_token(authorization: Optional[str] = Header(None)):
        if not api_token:
            return
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not secrets.compare_digest(token, api_token):
            raise HTTPException(401, "Invalid or missing bearer token")

    def get_repository(request: Request) -> JobRepository:
        return request.app.state.repository

    public = APIRouter(prefix="/api", tags=["health"])
    router = APIRouter(prefix="/api", tags=["catalog"], dependencies=[Depends(require_token)])

    @public.get("/health")
    def health():
        return ApiResponse.ok({"status": "ok"})

    @router.post("/jobs/search")
    def search_jobs(body: JobSearchBody, repo: JobRepository = Depends(get_repository)):
        request = JobSearchRequest.from_dict(body.model_dump())
        return ApiResponse.ok(repo.search_jobs(request))

    @router.post("/jobs/export")
    def export_jobs(body: JobSearchBody, repo: JobRepository = Depends(get_repository)):
        content = repo.export_search_to_csv(JobSearchRequest.from_dict(body.model_dump()))
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="jobs_export.csv"'},
        )

    @router.get("/jobs/{job_id}")
    def job_detail(job_id: int, repo: JobRepository = Depends(get_repository)):
        detail = repo.get_job_detail(job_id)
        if detail is None:
            raise HTTPException(404, f"Job {job_id} not found")
        return ApiResponse.ok(detail)

    @router.get("/jobs/{job_id}/graph")
    def job_graph(job_id: int, repo: JobRepository = Depends(get_repository)):
        graph = repo.get_job_graph(job_id)
        if graph is None:
            raise HTTPException(404, f"Job {job_id} not found")
        return ApiResponse.ok(graph)

    @router.get("/jobs/{job_id}/graph/end-to-end")
    def job_graph_end_to_end(job_id: int, repo: JobRepository = Depends(get_repository)):
        graph = repo.get_job_graph(job_id, end_to_end=True)
        if graph is None:
            raise HTTPException(404, f"Job {job_id} not found")
        return ApiResponse.ok(graph)

    @router.get("/dashboard/stats")
    def dashboard_stats(repo: JobRepository = Depends(get_repository)):
        return ApiResponse.ok(repo.dashboard_stats())

    @router.get("/filters")
    def filter_options(repo: JobRepository = Depends(get_repository)):
        return ApiResponse.ok(repo.filter_options())

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error_response(422, f"Invalid request: {exc.errors()}")

    @app.exception_handler(CatalogStoreError)
    async def store_error(request: Request, exc: CatalogStoreError):
        logger.error(f"Catalog query failed on {request.url.path}: {exc}")
        return _error_response(500, str(exc))

    app.include_router(public)
    app.include_router(router)
    return app


def run_server(db_path: str, host: Optional[str] = None, port: Optional[int] = None,
               api_token: Optional[str] = None):
    """Serve the API for the catalog at db_path with uvicorn."""
    import uvicorn

    server_config = get_config().server
    host = host or server_config.get('host', '0.0.0.0')
    port = port or server_config.get('port', 8080)
    api_token = api_token or server_config.get('api_token')

    repository = JobRepository(db_path)
    logger.info(f"Serving catalog {db_path} on http://{host}:{port}")
    try:
        uvicorn.run(create_app(repository, api_token=api_token), host=host, port=port)
    finally:
        repository.close()
