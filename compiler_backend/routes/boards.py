from __future__ import annotations

from fastapi import APIRouter, Request

from compiler_backend.application import get_compile_service

router = APIRouter(tags=["boards"])


@router.get("/boards")
async def list_boards(request: Request) -> dict:
    """Enumerate supported boards in registry order."""
    registry = get_compile_service(request).registry
    return {"boards": [{"fqbn": board.fqbn, "name": board.name} for board in registry.list_all()]}
