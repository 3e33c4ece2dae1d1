from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.requests import Request
from creditos.api.auth_routes import router as auth_router
from creditos.api.intake_routes import router as intake_router
from creditos.api.cliente_routes import router as cliente_router
from creditos.api.coordinador_routes import router as coordinador_router
from creditos.api.credito_routes import router as credito_router
from creditos.api.expediente_routes import router as expediente_router
from creditos.api.dashboard_routes import router as dashboard_router
from contextlib import asynccontextmanager
from creditos.database.connection import init_db
from creditos.core.config import settings
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging
import traceback


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to every non-OPTIONS response.

    OPTIONS requests are left to CORSMiddleware, which is registered last so
    it runs first and can answer preflights with the Access-Control headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["X-XSS-Protection"] = "1; mode=block"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)
    init_db()
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Clientes, coordinadores, créditos y expedientes",
    version="1.0.0",
    lifespan=lifespan
)


# Global exception handlers to return structured JSON and log tracebacks
logger = logging.getLogger("server_exception_handler")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        code = detail.get("code", "http_error")
        message = detail.get("message", str(detail))
    else:
        code = "http_error"
        message = str(detail) if detail else exc.status_code
    body = {
        "error": {
            "code": code,
            "message": message,
            "status_code": exc.status_code
        }
    }
    logger.warning(f"HTTPException handled: {detail}")
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # validator errors carry the raised exception object in ctx
    details = jsonable_encoder(exc.errors())
    body = {
        "error": {
            "code": "validation_error",
            "message": "Request validation failed",
            "details": details
        }
    }
    logger.warning(f"Validation error: {details}")
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    body = {
        "error": {
            "code": "internal_server_error",
            "message": "An unexpected error occurred",
            "details": str(exc)
        }
    }
    return JSONResponse(status_code=500, content=body)

# Supports comma-separated CLIENT_URL values, e.g. "http://localhost:3000,http://localhost:3001"
raw_origins = settings.CLIENT_URL or ""
allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

if not allowed_origins or any("localhost" in origin for origin in allowed_origins):
    allowed_origins = list(set(allowed_origins + ["http://localhost:3000", "http://localhost:3001"]))

logger.debug(f"CORS allowed origins: {allowed_origins}")

# Middleware runs LIFO: CORSMiddleware is added last so it handles preflights first
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "Accept-Language",
        "Content-Language",
        "X-Requested-With",
        "Cache-Control",
        "If-Modified-Since",
        "If-None-Match",
        "Pragma",
        # Lets the client retry a cliente creation safely
        "Idempotency-Key",
    ],
    expose_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

# Intake sessions go before the cliente router so /clientes/intake is never read as a cliente id
app.include_router(auth_router)
app.include_router(intake_router)
app.include_router(cliente_router)
app.include_router(coordinador_router)
app.include_router(credito_router)
app.include_router(expediente_router)
app.include_router(dashboard_router)

@app.get("/")
async def root():
    return {"message": "Creditos API is running!"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("creditos.main:app", host="0.0.0.0", port=8000, reload=True)
