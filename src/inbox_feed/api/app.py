"""FastAPI application.

Routes map inbound requests onto the auth, fetch and sweep operations. The
signed-in user is identified by a long-lived session cookie holding their
mail address.
"""

from __future__ import annotations

import urllib.parse

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from inbox_feed.api.models import (
    AuthStatusResponse,
    CronResponse,
    DataResponse,
    ErrorResponse,
    LogoutResponse,
)
from inbox_feed.auth import GoogleOAuthClient, complete_authorization, sign_out
from inbox_feed.config import Settings
from inbox_feed.exceptions import AuthenticationError, ConfigurationError, InboxFeedError
from inbox_feed.gmail.client import GmailClientFactory
from inbox_feed.models import AuthState, authentication_state
from inbox_feed.services import build_services
from inbox_feed.store import Database
from inbox_feed.sweep import run_sweep
from inbox_feed.utils import Clock

logger = structlog.get_logger()


def _error(status_code: int, error: str, **extra: object) -> JSONResponse:
    body = ErrorResponse(error=error, **extra)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    oauth_client: GoogleOAuthClient | None = None,
    client_factory: GmailClientFactory | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Create the API app.

    Args:
        settings: Application settings. If None, uses default settings.
        database: Persistence handle. If None, one is created from settings
            and owned (opened and closed) by the app.
        oauth_client: OAuth client. If None, the Google client is used.
        client_factory: Builds a Gmail client from a credential.
        clock: Source of the current time.
    """
    from inbox_feed.config import get_settings

    settings = settings or get_settings()
    owns_database = database is None
    services = build_services(
        settings,
        database=database,
        oauth_client=oauth_client,
        client_factory=client_factory,
        clock=clock,
    )

    app = FastAPI(title="Inbox Feed")
    app.state.services = services

    @app.on_event("startup")
    def _startup() -> None:
        services.database.open()
        logger.info("inbox_feed_api_started", fetch_mode=settings.fetch_mode)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        if owns_database:
            services.database.close()

    def _session_user(request: Request) -> str | None:
        value = request.cookies.get(settings.session_cookie_name)
        return value.strip().lower() if value and value.strip() else None

    def _redirect_home(**params: str) -> RedirectResponse:
        url = settings.frontend_url
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        return RedirectResponse(url=url)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/auth/login")
    def login():
        try:
            url = services.oauth.authorization_url()
        except ConfigurationError as exc:
            logger.error("oauth_login_unconfigured", error=str(exc))
            return _error(500, "OAuth is not configured")
        return RedirectResponse(url=url)

    @app.get("/auth/callback")
    async def callback(code: str | None = None, error: str | None = None):
        if error:
            logger.warning("oauth_callback_error", error=error)
            return _redirect_home(error=error)

        if not code:
            return _redirect_home(error="no_code")

        try:
            credential = await complete_authorization(
                services.credentials, services.oauth, code, clock=services.clock
            )
        except (AuthenticationError, ConfigurationError) as exc:
            logger.error("oauth_callback_exchange_failed", error=str(exc))
            return _redirect_home(error="token_exchange")

        params = {"success": "true"}
        try:
            await services.fetcher.fetch(credential.user_email, settings.gmail_max_results)
        except InboxFeedError as exc:
            logger.error(
                "initial_fetch_failed",
                user_email=credential.user_email,
                operation="callback",
                error=str(exc),
            )
            params = {"error": "initial_fetch"}

        response = _redirect_home(**params)
        response.set_cookie(
            settings.session_cookie_name,
            credential.user_email,
            max_age=settings.session_max_age,
            httponly=True,
            secure=settings.session_cookie_secure,
            samesite="lax",
            path="/",
        )
        return response

    @app.post("/auth/logout", response_model=LogoutResponse)
    def logout(request: Request):
        user_email = _session_user(request)
        if user_email and settings.purge_on_logout:
            sign_out(services.credentials, services.cache, user_email)

        body = LogoutResponse(success=True, message="Logged out successfully")
        response = JSONResponse(content=body.model_dump(mode="json", by_alias=True))
        response.set_cookie(
            settings.session_cookie_name,
            "",
            max_age=0,
            httponly=True,
            secure=settings.session_cookie_secure,
            samesite="lax",
            path="/",
        )
        return response

    @app.get("/auth/status", response_model=AuthStatusResponse)
    def auth_status(request: Request) -> AuthStatusResponse:
        user_email = _session_user(request)
        credential = services.credentials.get(user_email) if user_email else None
        state = authentication_state(credential, services.clock())
        return AuthStatusResponse(
            authenticated=state in (AuthState.VALID, AuthState.EXPIRED),
            user_email=credential.user_email if credential else None,
            state=state,
        )

    @app.get("/data")
    async def data(
        request: Request,
        refresh: bool = False,
        limit: int | None = Query(default=None, ge=1, le=500),
    ):
        user_email = _session_user(request)
        if user_email is None:
            return _error(401, "Not authenticated", authenticated=False)

        try:
            result = await services.fetcher.read(
                user_email,
                limit or settings.gmail_max_results,
                refresh=refresh,
            )
        except InboxFeedError as exc:
            logger.error(
                "data_request_failed",
                user_email=user_email,
                operation="refresh" if refresh else "read",
                error=str(exc),
            )
            return _error(500, "Failed to fetch data", authenticated=True, user_email=user_email)

        if result is None:
            return _error(401, "Not authenticated", authenticated=False)

        body = DataResponse(
            user_email=result.user_email,
            kind=result.kind,
            items=result.items,
            last_fetched=result.last_fetched,
            from_cache=result.from_cache,
        )
        return JSONResponse(content=body.model_dump(mode="json", by_alias=True))

    def _cron_authorized(request: Request) -> bool:
        if not settings.cron_secret:
            return True
        if settings.cron_trusted_header:
            trusted = request.headers.get(settings.cron_trusted_header)
            if trusted is not None and trusted == settings.cron_trusted_header_value:
                return True
        return request.headers.get("authorization") == f"Bearer {settings.cron_secret}"

    @app.get("/cron", response_model=CronResponse)
    async def cron(request: Request):
        if not _cron_authorized(request):
            logger.warning("cron_unauthorized")
            return _error(401, "Unauthorized")

        report = await run_sweep(
            services.credentials,
            services.fetcher,
            settings.gmail_max_results,
            concurrency=settings.sweep_concurrency,
        )
        body = CronResponse(
            success=True,
            total=report.total,
            succeeded=report.succeeded,
            failed=report.failed,
            skipped=report.skipped,
            results=report.results,
            timestamp=services.clock(),
        )
        return JSONResponse(content=body.model_dump(mode="json", by_alias=True))

    return app
