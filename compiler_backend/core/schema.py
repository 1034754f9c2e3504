from __future__ import annotations

from pydantic import BaseModel, ConfigDict, StrictStr


class CompileRequest(BaseModel):
    """Body of ``POST /compile``; both fields are checked by the validator."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    code: StrictStr | None = None
    fqbn: StrictStr | None = None
