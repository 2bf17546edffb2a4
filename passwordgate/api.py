from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from . import __version__
from .core import DEFAULT_POLICIES, preset_options, validate_password
from .errors import PolicyConfigurationError
from .hibp import BreachChecker

logger = logging.getLogger(__name__)

# request size caps; the blocklist scan costs roughly password x terms x term length
MAX_PASSWORD_LENGTH = 1024
MAX_BLOCKLIST_TERMS = 1024
MAX_TERM_LENGTH = 128


class PolicyOverrides(BaseModel):
    min_length: Optional[int] = Field(default=None, ge=1)
    max_length: Optional[int] = Field(default=None, ge=1)
    blocklist: Optional[List[Annotated[str, Field(max_length=MAX_TERM_LENGTH)]]] = Field(
        default=None, max_length=MAX_BLOCKLIST_TERMS, description="Terms the password must not resemble."
    )
    matching_sensitivity: Optional[float] = Field(default=None, ge=0.0, le=1.0, allow_inf_nan=False)
    max_edit_distance: Optional[int] = Field(default=None, ge=0)
    trim_whitespace: Optional[bool] = None
    error_limit: Optional[int] = Field(default=None, ge=1, description="Stop after this many errors.")
    hibp_check: Optional[bool] = None
    hibp_debounce_ms: Optional[float] = Field(
        default=None, ge=0, le=60_000, allow_inf_nan=False, description="Coalesce breach lookups within this window."
    )


class CheckRequest(BaseModel):
    password: str = Field(..., max_length=MAX_PASSWORD_LENGTH, description="Password to evaluate. Never stored or echoed.")
    preset: str = Field(default="nist", description="nist|relaxed|offline")
    options: Optional[PolicyOverrides] = Field(default=None, description="Overrides applied on top of the preset.")


def create_app(breach_checker: Optional[BreachChecker] = None) -> FastAPI:
    checker = breach_checker or BreachChecker()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await checker.aclose()

    app = FastAPI(
        title="PasswordGate API",
        version=__version__,
        description="Password policy checks: length, fuzzy blocklist and breach database lookups.",
        lifespan=lifespan,
    )
    app.state.breach_checker = checker

    @app.get("/")
    def root() -> Dict[str, Any]:
        return {
            "tool": "PasswordGate",
            "version": __version__,
            "endpoints": ["/health", "/policies", "/check"],
            "note": "Passwords are never stored, logged or returned.",
        }

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/policies")
    def policies() -> Dict[str, Any]:
        return {"presets": DEFAULT_POLICIES}

    @app.post("/check")
    async def check(req: CheckRequest) -> Dict[str, Any]:
        t0 = time.time()
        if req.preset not in DEFAULT_POLICIES:
            raise HTTPException(status_code=404, detail=f"Unknown preset: {req.preset}")

        overrides = req.options.model_dump(exclude_none=True) if req.options else {}
        try:
            options = preset_options(req.preset, **overrides)
            result = await validate_password(req.password, options, breach_checker=checker)
        except PolicyConfigurationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        out: Dict[str, Any] = result.to_dict()
        out["preset"] = req.preset
        out["elapsed_ms"] = int((time.time() - t0) * 1000)
        logger.info("check preset=%s valid=%s errors=%d", req.preset, result.valid, len(result.errors))
        return out

    return app
