from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from compiler_backend.core.errors import ValidationError
from compiler_backend.core.schema import CompileRequest
from compiler_backend.domain import BoardDescriptor
from compiler_backend.infrastructure.boards import BoardRegistry


def _missing(field: str) -> ValidationError:
    return ValidationError(f"Missing {field} parameter")


def parse_compile_request(payload: Any) -> CompileRequest:
    """Coerce a decoded JSON body into a :class:`CompileRequest`.

    Anything that is not a JSON object is treated as an empty body.  Fields of
    the wrong type are reported the same way as absent ones.
    """

    body = payload if isinstance(payload, dict) else {}
    code = body.get("code")
    # code is reported first, whatever state fqbn is in
    if not isinstance(code, str) or not code:
        raise _missing("code")

    try:
        request = CompileRequest.model_validate(body)
    except PydanticValidationError as exc:
        raise _missing("fqbn") from exc

    if not request.fqbn:
        raise _missing("fqbn")
    return request


def validate_board(fqbn: str, registry: BoardRegistry) -> BoardDescriptor:
    board = registry.lookup(fqbn)
    if board is None:
        supported = ", ".join(registry.fqbns())
        raise ValidationError(f"Unsupported board: {fqbn}. Supported: {supported}")
    return board
