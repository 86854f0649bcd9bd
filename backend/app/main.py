# main.py
"""
Point d'entrée de l'API SalesTracker.
Enregistre tous les modules via leurs routers.

Architecture : modules verticaux (router → service → repository)
+ engine transversal sans I/O (visibilité, rappels, emails, export).

Toute erreur sort au format {"error": "<message>"}.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import AppError, UpstreamStoreError
from app.core.logging import configure_logging

from app.modules.auth.router         import router as auth_router
from app.modules.visits.router       import router as visits_router
from app.modules.appointments.router import router as appointments_router
from app.modules.team.router         import router as team_router
from app.modules.catalogue.router    import router as catalogue_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(visits_router)
app.include_router(appointments_router)
app.include_router(team_router)
app.include_router(catalogue_router)


# ── Gestion des erreurs ───────────────────────────────────

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(
            exc.message,
            extra={"method": request.method, "path": request.url.path, "status_code": exc.status_code},
        )
    return _error(exc.status_code, exc.message)


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Erreur de la base hébergée",
        extra={"method": request.method, "path": request.url.path, "error": str(exc)},
    )
    return _error(UpstreamStoreError.status_code, UpstreamStoreError.default_message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Données invalides.")


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(
        "Erreur inattendue",
        extra={"method": request.method, "path": request.url.path},
    )
    return _error(500, "Erreur interne du serveur.")


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
