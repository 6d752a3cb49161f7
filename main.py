"""Idea Saver - voice notes with AI transcription."""

import html
import logging
import time

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError as PydanticValidationError
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.database import get_db
from app.dependencies import clear_auth_cookie, get_current_user_from_cookie, set_auth_cookie
from app.errors import IdeaSaverError
from app.rate_limit import limiter
from app.redirects import resolve_redirect
from app.routers import auth_router, functions_router, profile_router
from app.schemas.auth import MIN_PASSWORD_LENGTH, RegisterRequest
from app.services.auth import get_auth_service
from app.services.jwt import get_jwt_service
from app.services.profile import get_profile_service

# Logging
logger = logging.getLogger("idea_saver")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Idea Saver", version="0.1.0")
app.state.limiter = limiter

for warning in get_settings().validate():
    logger.warning("Config: %s", warning)


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'self'; img-src 'self' data:; media-src 'self' data:"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    # base64 inflates audio by 4/3, plus JSON overhead
    MAX_BODY_SIZE = int(get_settings().MAX_AUDIO_SIZE_MB * 1024 * 1024 * 4 / 3) + 64 * 1024

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > self.MAX_BODY_SIZE:
            return JSONResponse(status_code=413, content={"error": "Request body too large"})
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {"/api/profile", "/api/v1/functions/", "/api/v1/auth/register", "/api/v1/auth/login", "/login"}

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        method = request.method
        if method == "POST" and any(path.startswith(p) for p in self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(AuditLogMiddleware)

# API routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(functions_router)


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=429, content={"detail": "Too many requests. Try again later."})
    return HTMLResponse(content="<h1>429</h1><p>Too many requests. Please try again later.</p>", status_code=429)


# --- Application errors: stable {error, details} shape ---
@app.exception_handler(IdeaSaverError)
async def idea_saver_error_handler(request: Request, exc: IdeaSaverError) -> JSONResponse:
    """Convert domain errors to JSON."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "details": exc.details})


# --- Exception handler: 401 -> redirect to /login ---
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Handle HTTP exceptions. Redirect 401 to login for web requests."""
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    if exc.status_code == 401:
        return RedirectResponse(url="/login", status_code=302)
    return HTMLResponse(
        content=f"<h1>{exc.status_code}</h1><p>{html.escape(str(exc.detail))}</p>",
        status_code=exc.status_code,
    )


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "idea-saver", "version": "0.1.0"}


# --- Web routes ---
PAGE_TITLES = {
    "/": "Idea Saver",
    "/login": "Sign in",
    "/pricing": "Choose your plan",
    "/record": "Record",
    "/settings": "Settings",
    "/history": "History",
}


def _page_shell(title: str, body: str = "") -> HTMLResponse:
    return HTMLResponse(
        content=f"<!doctype html><html><head><title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1>{body}</body></html>"
    )


def render_page(request: Request, db: Session = Depends(get_db)) -> Response:
    """Apply the navigation policy to a page request, then render its shell."""
    path = request.url.path
    user = get_current_user_from_cookie(request)
    profile = get_profile_service().upsert_profile(db, user.user_id, user.email) if user else None

    target = resolve_redirect(user is not None, profile, path)
    if target:
        return RedirectResponse(url=target, status_code=302)
    return _page_shell(PAGE_TITLES[path])


for _path in PAGE_TITLES:
    app.add_api_route(
        _path,
        render_page,
        methods=["GET"],
        response_class=HTMLResponse,
        include_in_schema=False,
        name=f"page:{_path}",
    )


def _login_error(message: str) -> HTMLResponse:
    return _page_shell(PAGE_TITLES["/login"], f'<p class="error">{html.escape(message)}</p>')


@app.post("/login", response_class=HTMLResponse)
def login_submit(
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
) -> Response:
    """Handle login form submission."""
    result = get_auth_service().authenticate(db, email, password)
    if not result.success:
        return _login_error("Invalid email or password. Please try again.")

    token = get_jwt_service().create_token(user_id=result.user_id, email=result.email)  # type: ignore[arg-type]
    response = RedirectResponse(url="/", status_code=302)
    set_auth_cookie(response, token)
    return response


@app.post("/register", response_class=HTMLResponse)
def register_submit(
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
) -> Response:
    """Handle sign-up form submission."""
    try:
        form = RegisterRequest(email=email, password=password)
    except PydanticValidationError:
        return _login_error(
            f"Please enter a valid email address and a password of at least {MIN_PASSWORD_LENGTH} characters."
        )

    result = get_auth_service().register(db, form.email, form.password)
    if not result.success:
        return _login_error("An account with this email already exists. Please sign in instead.")

    token = get_jwt_service().create_token(user_id=result.user_id, email=result.email)  # type: ignore[arg-type]
    response = RedirectResponse(url="/", status_code=302)
    set_auth_cookie(response, token)
    return response


@app.get("/logout")
def logout() -> RedirectResponse:
    """Clear auth cookie and redirect home."""
    response = RedirectResponse(url="/", status_code=302)
    clear_auth_cookie(response)
    return response
