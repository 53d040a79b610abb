"""Browser-facing dashboard listing users and the latest daily record."""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .backend import adapter_for
from .client import UsersAPIClient
from .config import Settings, load_settings
from .controller import DashboardController
from .sessions import DashboardSessions
from .state import ResourceState, ViewState
from .table import build_table
from .views import DAILY_RECORD_COLUMNS, user_columns

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

logger = logging.getLogger("userdash.web")


def _trusted_proxy_hosts() -> list[str] | str:
    raw = os.getenv("USERDASH_TRUSTED_PROXIES")
    if not raw:
        return "*"
    hosts = [item.strip() for item in raw.split(",") if item.strip()]
    return hosts or "*"


def _resource_payload(resource: ResourceState) -> Dict[str, object]:
    return {
        "status": resource.status.value,
        "error": resource.error,
        "error_kind": resource.error_kind,
        "latest_request": resource.latest_request,
        "loaded_request": resource.loaded_request,
    }


def _state_payload(controller: DashboardController) -> Dict[str, object]:
    view: ViewState = controller.state
    return {
        "search_query": view.search_query,
        "total_count": view.total_count,
        "users": {**_resource_payload(view.users), "rows": controller.user_rows()},
        "daily_record": {**_resource_payload(view.daily_record), "rows": controller.daily_rows()},
        "action_error": view.action_error,
    }


def build_client(settings: Settings) -> UsersAPIClient:
    return UsersAPIClient(
        settings.api_base_url,
        adapter=adapter_for(settings.backend_version),
        timeout=settings.request_timeout,
    )


def build_controller(settings: Settings, *, client: UsersAPIClient) -> DashboardController:
    return DashboardController(client, zone=settings.zone, date_format=settings.date_format)


def create_app(
    *,
    settings: Optional[Settings] = None,
    client: Optional[UsersAPIClient] = None,
    session_secret: Optional[str] = None,
) -> FastAPI:
    """Create the dashboard web application."""

    if settings is None:
        settings = load_settings()

    if session_secret is None:
        session_secret = settings.session_secret
    if not session_secret:
        raise RuntimeError("USERDASH_SESSION_SECRET must be configured to serve the dashboard")

    owned_client: Optional[UsersAPIClient] = None
    if client is None:
        owned_client = client = build_client(settings)
    sessions = DashboardSessions(lambda: build_controller(settings, client=client))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            if owned_client is not None:
                await owned_client.aclose()

    app = FastAPI(
        title="User Records Dashboard",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=_trusted_proxy_hosts())
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie="userdash_session",
        same_site="lax",
    )
    app.state.settings = settings
    app.state.sessions = sessions

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    templates.env.globals["api_base_url"] = settings.api_base_url

    def _flash(request: Request, message: str, *, category: str = "info") -> None:
        messages = request.session.get("flash_messages")
        if not isinstance(messages, list):
            messages = []
        messages.append({"message": message, "category": category})
        request.session["flash_messages"] = messages

    def _consume_flash(request: Request) -> List[Dict[str, str]]:
        messages = request.session.pop("flash_messages", [])
        if isinstance(messages, list):
            return messages
        return []

    def _controller_for(request: Request) -> DashboardController:
        token = request.session.get("dashboard_id")
        controller = sessions.resolve(token)
        if controller is None:
            token, controller = sessions.create()
            request.session["dashboard_id"] = token
            logger.debug("Started dashboard session (%d active)", len(sessions))
        return controller

    def _redirect_to_dashboard(request: Request, controller: DashboardController) -> RedirectResponse:
        url = request.url_for("dashboard")
        query = controller.state.search_query
        if query is not None:
            url = url.include_query_params(search=query)
        return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def root(request: Request):
        return RedirectResponse(
            request.url_for("dashboard"),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    @app.get("/dashboard", response_class=HTMLResponse, name="dashboard")
    async def dashboard(request: Request):
        # An absent parameter means "no search"; an empty one is a real query.
        query = request.query_params.get("search")
        filter_text = request.query_params.get("filter", "")
        controller = _controller_for(request)

        # Every load refetches; a filter-only change narrows the batch already held.
        view = await controller.show(query, reuse="filter" in request.query_params)
        shown_query = view.loaded_query if view.users.has_data else view.search_query

        users_page = view.users.data
        user_table = build_table(
            user_columns(
                users_page.version if users_page is not None else None,
                delete_action=lambda uuid: str(request.url_for("delete_user", uuid=uuid)),
            ),
            controller.user_rows(),
            searchable=True,
            filter_text=filter_text,
        )
        daily_table = build_table(DAILY_RECORD_COLUMNS, controller.daily_rows())

        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "view": view,
                "search_query": shown_query,
                "user_table": user_table,
                "daily_table": daily_table,
                "total_users": view.total_count,
                "messages": _consume_flash(request),
            },
        )

    @app.get("/dashboard/state", name="dashboard_state")
    async def dashboard_state(request: Request) -> JSONResponse:
        return JSONResponse(_state_payload(_controller_for(request)))

    @app.post("/dashboard/refresh", name="refresh_dashboard")
    async def refresh_dashboard(request: Request):
        controller = _controller_for(request)
        await controller.refresh()
        return _redirect_to_dashboard(request, controller)

    @app.post("/users/{uuid}/delete", name="delete_user")
    async def delete_user(request: Request, uuid: str):
        logger.info("Delete requested for user %s", uuid)
        controller = _controller_for(request)
        if await controller.delete_user(uuid):
            _flash(request, "User deleted successfully.", category="success")
        else:
            _flash(request, controller.state.action_error or "Could not delete user.", category="error")
        return _redirect_to_dashboard(request, controller)

    return app


__all__ = ["build_client", "build_controller", "create_app"]
