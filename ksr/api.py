from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .api_models import DeleteServicesRequest
from .db import EventStore
from .errors import CONFLICT, FORBIDDEN, INVALID, NOT_FOUND, DecodeError, ResourceCreateError
from .services import ServiceReconciler
from .settings import Settings

HTTP_STATUS_BY_CATEGORY = {
    CONFLICT: 409,
    NOT_FOUND: 404,
    INVALID: 422,
    FORBIDDEN: 403,
}


def create_app(
    reconciler: ServiceReconciler,
    *,
    store: EventStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    dev = settings is None or settings.run_mode == "dev"
    app = FastAPI(
        title="Kubernetes Service Reconciler",
        docs_url="/docs" if dev else None,
        redoc_url=None,
        openapi_url="/openapi.json" if dev else None,
    )

    @app.exception_handler(DecodeError)
    async def _decode_error(request: Request, exc: DecodeError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(ResourceCreateError)
    async def _create_error(request: Request, exc: ResourceCreateError) -> JSONResponse:
        code = HTTP_STATUS_BY_CATEGORY.get(exc.category, status.HTTP_502_BAD_GATEWAY)
        return JSONResponse(
            status_code=code,
            content={"detail": exc.detail, "category": exc.category, "name": exc.name},
        )

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "healthy"}

    @app.post("/services", status_code=status.HTTP_201_CREATED)
    async def create_service(request: Request):
        payload = await request.body()
        created = await run_in_threadpool(reconciler.create_service_from_encoded, payload)
        return reconciler.cluster.to_manifest(created)

    @app.post("/services/delete")
    def delete_services(req: DeleteServicesRequest) -> dict[str, list[str]]:
        reconciler.delete_services(req.names)
        return {"attempted": req.names}

    @app.delete("/services/{name}")
    def delete_service(name: str) -> dict[str, list[str]]:
        reconciler.delete_services([name])
        return {"attempted": [name]}

    @app.get("/events")
    def events(limit: int = Query(20, ge=1, le=1000)):
        if store is None:
            raise HTTPException(status_code=404, detail="Event store is not configured.")
        return store.latest_events(limit)

    return app
