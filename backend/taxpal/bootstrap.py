"""Service start-up.

``Bootstrap.run`` loads configuration, acquires every runtime collaborator in
one batch, builds the application and starts listening. The listening step is
owned by a ``ServerHandle`` whose ``start`` is a no-op once it has started, so
running the sequence twice in one process never opens a second socket.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse

from .auth import TokenVerifier
from .body_parsing import FormBodyMiddleware
from .config import Settings, load_environment
from .controllers import RecordController, TransactionController
from .db import Database
from .errors import DependencyLoadError, PersistenceConnectError, install_error_handlers
from .logging_setup import get_logger
from .mailer import MailerVerifier
from .routes import API_PREFIX, RouteRegistry, expense_routes, income_routes, transaction_routes
from .schemas import HealthStatus, RouteList
from .store import RecordStore


logger = get_logger("taxpal.bootstrap")


class ListeningServer(Protocol):
    started: bool

    async def serve(self) -> None: ...


ServerFactory = Callable[[FastAPI], ListeningServer]


@dataclass(frozen=True)
class DocsConfig:
    title: str = "TaxPal API Documentation"
    version: str = "1.0.0"
    description: str = "Incomes, expenses and transactions for the TaxPal budgeting app"
    path: str = "/api-docs"
    openapi_path: str = "/openapi.json"


@dataclass(frozen=True)
class Runtime:
    server_factory: ServerFactory
    database: Database
    docs: DocsConfig
    mailer: MailerVerifier


def _http_layer(settings: Settings) -> ServerFactory:
    import uvicorn

    def build(app: FastAPI) -> ListeningServer:
        config = uvicorn.Config(app, host=settings.host, port=settings.port, server_header=False)
        return uvicorn.Server(config)

    return build


def _persistence(settings: Settings) -> Database:
    path = settings.database_path
    if not path:
        raise ValueError("database location is empty")
    return Database(path, timeout=settings.db_timeout_seconds)


def _docs(_settings: Settings) -> DocsConfig:
    return DocsConfig()


def _mailer(settings: Settings) -> MailerVerifier:
    return MailerVerifier(settings.smtp_host, settings.smtp_port)


DEFAULT_FACTORIES: dict[str, Callable[[Settings], Any]] = {
    "http": _http_layer,
    "persistence": _persistence,
    "docs": _docs,
    "mailer": _mailer,
}


def acquire_dependencies(
    settings: Settings,
    overrides: Mapping[str, Callable[[Settings], Any]] | None = None,
) -> Runtime:
    factories = {**DEFAULT_FACTORIES, **(overrides or {})}
    built: dict[str, Any] = {}
    failures: dict[str, BaseException] = {}
    for name, factory in factories.items():
        try:
            built[name] = factory(settings)
        except Exception as exc:
            failures[name] = exc
    if failures:
        raise DependencyLoadError(failures)
    return Runtime(
        server_factory=built["http"],
        database=built["persistence"],
        docs=built["docs"],
        mailer=built["mailer"],
    )


def install_docs(app: FastAPI, docs: DocsConfig) -> None:
    def swagger_ui() -> HTMLResponse:
        return get_swagger_ui_html(openapi_url=docs.openapi_path, title=docs.title)

    app.add_api_route(docs.path, swagger_ui, methods=["GET"], include_in_schema=False)


def create_app(settings: Settings, runtime: Runtime) -> FastAPI:
    database = runtime.database

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        try:
            await asyncio.to_thread(database.connect)
            logger.info("[db] connected: %s", database.db_path)
        except PersistenceConnectError as exc:
            logger.error("[db] connection error: %s", exc)
        yield

    app = FastAPI(
        title=runtime.docs.title,
        version=runtime.docs.version,
        description=runtime.docs.description,
        openapi_url=runtime.docs.openapi_path,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.token_verifier = TokenVerifier(settings.auth_secret)
    install_error_handlers(app)

    # last added runs first: CORS wraps body parsing
    app.add_middleware(FormBodyMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_docs(app, runtime.docs)
    logger.info("[docs] Swagger UI at http://localhost:%d%s", settings.port, runtime.docs.path)

    logger.info("[db] connecting to: %s", database.db_path)

    store = RecordStore(database)
    registry = RouteRegistry()
    registry.mount(app, income_routes(RecordController("incomes", store, kind="income")))
    registry.mount(app, expense_routes(RecordController("expenses", store, kind="expense")))
    registry.mount(app, transaction_routes(TransactionController(store)))

    @app.get(f"{API_PREFIX}/health", response_model=HealthStatus)
    def health() -> dict[str, str]:
        return {"status": "OK", "message": "TaxPal API is running"}

    registry.record("GET", f"{API_PREFIX}/health")

    if not settings.is_production:

        @app.get("/__routes", response_model=RouteList, include_in_schema=False)
        def list_routes() -> dict[str, list[str]]:
            return {"routes": registry.routes()}

        registry.record("GET", "/__routes")

    app.state.route_registry = registry
    return app


class ServerHandle:
    """Owns the listening server. ``start`` runs at most once per handle."""

    def __init__(
        self,
        server_factory: ServerFactory,
        address: str = "",
        on_listening: Callable[[], object] | None = None,
        poll_interval: float = 0.05,
    ) -> None:
        self._server_factory = server_factory
        self._address = address
        self._on_listening = on_listening
        self._poll_interval = poll_interval
        self._server: ListeningServer | None = None
        self.started = False

    def start(self, app: FastAPI) -> bool:
        if self.started:
            logger.info("[server] listen skipped (already started)")
            return False
        self.started = True
        self._server = self._server_factory(app)
        asyncio.run(self._serve(self._server))
        return True

    async def _serve(self, server: ListeningServer) -> None:
        watcher = asyncio.create_task(self._announce(server))
        try:
            await server.serve()
        finally:
            watcher.cancel()

    async def _announce(self, server: ListeningServer) -> None:
        while not server.started:
            await asyncio.sleep(self._poll_interval)
        logger.info("[server] TaxPal server running at %s", self._address)
        if self._on_listening is None:
            return
        try:
            await asyncio.to_thread(self._on_listening)
        except Exception as exc:
            logger.warning("[server] post-listen check failed: %s", exc)


class Bootstrap:
    def __init__(
        self,
        factories: Mapping[str, Callable[[Settings], Any]] | None = None,
        env_files: list[Path] | None = None,
    ) -> None:
        self._factories = factories
        self._env_files = env_files
        self.settings: Settings | None = None
        self.app: FastAPI | None = None
        self.server: ServerHandle | None = None

    def prepare(self) -> tuple[FastAPI, ServerHandle]:
        if self.app is None or self.server is None:
            load_environment(self._env_files)
            settings = Settings()
            runtime = acquire_dependencies(settings, self._factories)
            self.settings = settings
            self.app = create_app(settings, runtime)
            self.server = ServerHandle(
                runtime.server_factory,
                address=f"http://localhost:{settings.port}",
                on_listening=runtime.mailer.verify,
            )
        return self.app, self.server

    def run(self) -> bool:
        app, server = self.prepare()
        return server.start(app)
