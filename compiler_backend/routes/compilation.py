from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from compiler_backend.application import get_compile_service
from compiler_backend.core.errors import CompileServiceError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["compile"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/compile")
async def compile_sketch(request: Request, payload: Any = Body(default=None)) -> JSONResponse:
    """Compile a sketch for one board.

    Compile errors, timeouts and a missing artifact are data-level results
    and come back as 200 with ``success: false``.  Only malformed requests
    (400) and environment failures (500) use error status codes.
    """
    service = get_compile_service(request)
    try:
        result = await service.compile(payload)
    except ValidationError as exc:
        return _error(400, str(exc))
    except CompileServiceError as exc:
        logger.error("Compile error: %s", exc)
        return _error(500, str(exc))
    except Exception as exc:
        logger.exception("Unexpected failure while compiling")
        return _error(500, str(exc) or exc.__class__.__name__)
    return JSONResponse(result.to_payload())
