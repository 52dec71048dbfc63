from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from . import __version__
from .addresses import LocalAddressLister
from .config import Settings
from .logging_setup import current_time, get_logger, setup_logging
from .metadata import MetadataProbe
from .models import AppState, PageViewModel
from .render import PageRenderer

logger = get_logger(__name__)


class PageHandler:
    """Builds the page for one request from the shared state and lookups."""

    def __init__(
        self,
        state: AppState,
        lister: LocalAddressLister,
        probe: MetadataProbe,
        renderer: PageRenderer,
    ) -> None:
        self.state = state
        self.lister = lister
        self.probe = probe
        self.renderer = renderer

    def handle(self, name: str, remote_addr: str) -> bytes:
        count = self.state.next_count()
        logger.info("Count: %d IP: %s", count, remote_addr)
        model = PageViewModel(
            time=current_time(),
            counter=count,
            name=name,
            private_ips=self.lister.local_addresses(),
            aws_az=self.probe.availability_zone(),
            h3_color=self.state.h3_color,
        )
        return self.renderer.render(model)


def warm_up(lister: LocalAddressLister, probe: MetadataProbe) -> list[threading.Thread]:
    """Fill both caches in the background; requests still work if they lose the race."""
    threads = [
        threading.Thread(target=lister.local_addresses, name="warm-addresses", daemon=True),
        threading.Thread(target=probe.availability_zone, name="warm-az", daemon=True),
    ]
    for t in threads:
        t.start()
    return threads


def remote_addr(request: Request) -> str:
    if request.client is None:
        return "-"
    return f"{request.client.host}:{request.client.port}"


async def form_name(request: Request) -> str:
    # Body values win over the query string
    if request.method == "POST":
        try:
            form = await request.form()
        except (HTTPException, MultiPartException) as exc:
            detail = exc.detail if isinstance(exc, HTTPException) else exc.message
            logger.warning("ERROR - parse form body from %s: %s", remote_addr(request), detail)
            return request.query_params.get("name", "")
        value = form.get("name")
        if isinstance(value, str):
            return value
    return request.query_params.get("name", "")


def create_app(
    settings: Optional[Settings] = None,
    state: Optional[AppState] = None,
    lister: Optional[LocalAddressLister] = None,
    probe: Optional[MetadataProbe] = None,
    renderer: Optional[PageRenderer] = None,
    warm: bool = True,
) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    handler = PageHandler(
        state=state or AppState(h3_color=settings.h3_color),
        lister=lister or LocalAddressLister(),
        probe=probe or MetadataProbe(),
        renderer=renderer or PageRenderer(),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.warm_threads = warm_up(handler.lister, handler.probe) if warm else []
        yield

    app = FastAPI(title="lbdemo", version=__version__, lifespan=lifespan)
    app.state.handler = handler

    async def index(request: Request) -> Response:
        name = await form_name(request)
        body = await run_in_threadpool(handler.handle, name, remote_addr(request))
        return HTMLResponse(content=body)

    # === Icon & health ===

    @app.api_route("/favicon.ico", methods=["GET", "HEAD"])
    def favicon() -> Response:
        return Response(status_code=200)

    @app.api_route("/health", methods=["GET", "HEAD", "POST"], response_class=PlainTextResponse)
    def health() -> str:
        return "OK"

    # === Page ===

    # Every other path serves the page too; registered last so the routes above win
    app.add_api_route("/", index, methods=["GET", "POST"], response_class=HTMLResponse)
    app.add_api_route("/{path:path}", index, methods=["GET", "POST"], response_class=HTMLResponse)

    return app


app = create_app()
