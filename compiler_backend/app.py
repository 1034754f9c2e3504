import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from compiler_backend.application import CompileService
from compiler_backend.core.settings import Settings
from compiler_backend.core.workspaces import WorkspaceManager
from compiler_backend.infrastructure import ArduinoCliToolchain, BoardRegistry, Toolchain
from compiler_backend.logging_utils import configure_logging
from compiler_backend.routes import boards, compilation, health
from compiler_backend.version import __version__

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    registry: BoardRegistry | None = None,
    toolchain: Toolchain | None = None,
) -> FastAPI:
    configure_logging()
    settings = settings or Settings.from_env()
    if registry is None:
        registry = BoardRegistry.from_yaml(settings.boards_file)
    if toolchain is None:
        toolchain = ArduinoCliToolchain.from_settings(settings)

    app = FastAPI(title="Arduino Compiler Service", version=__version__)
    app.state.settings = settings
    app.state.compile_service = CompileService(
        registry,
        WorkspaceManager(settings.builds_root),
        toolchain,
    )

    # registered first so CORS wraps the 413 responses too
    @app.middleware("http")
    async def limit_request_body(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_request_bytes:
            return JSONResponse(
                status_code=413,
                content={"success": False, "error": "Request body too large"},
            )
        return await call_next(request)

    origins = list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(boards.router)
    app.include_router(compilation.router)

    logger.info("Supported boards: %d", len(registry))
    logger.info("CLI path: %s", settings.cli_path)
    logger.info("CFG path: %s (exists: %s)", settings.config_file, settings.config_file.is_file())
    return app


app = create_app()
