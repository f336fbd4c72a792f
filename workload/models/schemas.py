from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class WorkResponse(BaseModel):
    ok: bool = True
    mode: Literal["fine", "cpu", "latency"]
    time: str
    burn: str | None = None
    delay: str | None = None
