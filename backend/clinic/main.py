from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from clinic.config import get_settings
from clinic.exceptions import (
    ClinicError,
    InvalidRecordError,
    NotAuthenticatedError,
    PermissionDeniedError,
    StorageError,
    UnknownPatientError,
)
from clinic.routers import auth, calendar, dashboard, incidents, patients
from clinic.storage import get_storage
from clinic.store import ClinicStore


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Middleware to add no-cache headers to prevent browser caching."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError):
        return JSONResponse(status_code=401, content={"detail": exc.reason})

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied(request: Request, exc: PermissionDeniedError):
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.exception_handler(UnknownPatientError)
    async def unknown_patient(request: Request, exc: UnknownPatientError):
        return JSONResponse(status_code=422, content={"detail": str(exc), "patient_id": exc.patient_id})

    @app.exception_handler(InvalidRecordError)
    async def invalid_record(request: Request, exc: InvalidRecordError):
        return JSONResponse(status_code=422, content={"detail": exc.errors})

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        # Shown to the user as a toast; the change was not saved.
        print(f"[api] storage error on {exc.key}: {exc.reason}")
        return JSONResponse(
            status_code=503,
            content={"detail": f"Could not save changes: {exc.reason}", "key": exc.key},
        )

    @app.exception_handler(ClinicError)
    async def clinic_error(request: Request, exc: ClinicError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(store: Optional[ClinicStore] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: open storage, seed and load the store
        owned = store is None
        app.state.store = store or ClinicStore(get_storage(get_settings()))
        app.state.store.init()
        yield
        # Shutdown
        app.state.store.shutdown()
        if owned:
            app.state.store.storage.close()

    app = FastAPI(
        title="Dental Clinic Dashboard",
        description="Patients, appointments and sessions backed by key-value storage",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(NoCacheMiddleware)
    register_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
    app.include_router(patients.router, prefix="/api/patients", tags=["Patients"])
    app.include_router(incidents.router, prefix="/api/incidents", tags=["Incidents"])
    app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy", "service": "dental-clinic-dashboard"}

    return app


app = create_app()
