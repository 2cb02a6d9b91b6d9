import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from utopia_orchestration.api import containers, images, networks, stats
from utopia_orchestration.core.config import Settings
from utopia_orchestration.domain.errors import (
    BackendInvocationError,
    ExecutionTimeoutError,
    ParseError,
)

logger = logging.getLogger(__name__)

settings = Settings()

app = FastAPI(title="Utopia Orchestration – Control Plane")

origins = [
    "http://localhost:5173"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(containers.router)
app.include_router(networks.router)
app.include_router(stats.router)
app.include_router(images.router)


# ---------- Error mapping ----------

@app.exception_handler(BackendInvocationError)
async def backend_error_handler(request: Request, exc: BackendInvocationError):
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "diagnostic": exc.diagnostic, "code": exc.code},
    )


@app.exception_handler(ExecutionTimeoutError)
async def timeout_error_handler(request: Request, exc: ExecutionTimeoutError):
    return JSONResponse(status_code=504, content={"detail": str(exc)})


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError):
    return JSONResponse(status_code=502, content={"detail": f"Unreadable backend output: {exc}"})


# ---------- Startup ----------

@app.on_event("startup")
async def startup_event():
    logging.basicConfig(level=settings.LOG_LEVEL)
    logger.info(f"[STARTUP] backend={settings.BACKEND} namespace={settings.NAMESPACE}")
