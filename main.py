import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from app.config import settings
from app.database import engine
from app.exceptions import (InvalidArgument, InvalidTransition, NotFoundError, PermissionDenied,
                            TokenAlreadyUsed, Unavailable, ValidationError)
from app.middleware import add_cors_middleware
from app.models.all_models import Base
from app.routes import (auth, users, academics, results, rankings,
                        redemption, tokens, terms, audit_logs)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES_ON_STARTUP:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ready")
    yield


app = FastAPI(title="School Results System",
              description="Result approval, positions and scratch-card result checking for a school",
              version="1.0.0",
              lifespan=lifespan)
add_cors_middleware(app)


def _error_response(status_code: int, exc) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(TokenAlreadyUsed)
async def token_already_used_handler(request: Request, exc: TokenAlreadyUsed):
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(PermissionDenied)
async def permission_denied_handler(request: Request, exc: PermissionDenied):
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(Unavailable)
async def unavailable_handler(request: Request, exc: Unavailable):
    logger.error(f"Store unavailable on {request.method} {request.url.path}: {exc.__cause__!r}")
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


@app.get("/", include_in_schema=False)
async def root():
    """
    Root endpoint that redirects to the API documentation
    """
    return RedirectResponse(url="/docs")

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(academics.router)
app.include_router(terms.router)
app.include_router(results.router)
app.include_router(rankings.router)
app.include_router(tokens.router)
app.include_router(redemption.router)
app.include_router(audit_logs.router)
