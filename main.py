# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Organist Rotation Service
=========================
Generates organist rotations for a church's recurring services: fair
round-robin through ordered cycles, two isolated tracks (official / youth),
and only official organists on the main role.

Port: 8010
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rodizio.controllers import rotation_controller, system_controller
from rodizio.core.config import settings
from rodizio.core.database import engine, init_schema
from rodizio.core.logging import get_logger
from rodizio.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


@asynccontextmanager
async def lifespan(application: FastAPI):
    if settings.AUTO_CREATE_SCHEMA:
        try:
            init_schema(engine)
        except Exception:
            logger.warning("Could not create schema, database may not be ready yet")
    logger.info("%s v%s started", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    engine.dispose()
    logger.info("Shutting down, connection pool disposed")


app = FastAPI(
    title="Organist Rotation Service",
    description="Cycle-based organist rotation generator.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc)},
    )


app.include_router(system_controller.router)
app.include_router(rotation_controller.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
