from __future__ import annotations

import logging
import sys
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .config import API_KEY, CORS_ORIGINS, LOG_LEVEL
from .models import MLA, MP, ROLES, NameQuery, opposite_role
from .resolver import MemberResolver

# ── Configure logging ────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(levelname)s:     %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)
LOGGER = logging.getLogger(__name__)

SOURCE_NAME = "PRS India"


# ── App state container ──────────────────────────────────────────────────────


class AppState:
    def __init__(self) -> None:
        self._resolver: MemberResolver | None = None
        self.lookups: int = 0
        self.found: int = 0

    @property
    def resolver(self) -> MemberResolver:
        if self._resolver is None:
            self._resolver = MemberResolver()
        return self._resolver

    @resolver.setter
    def resolver(self, value: MemberResolver | None) -> None:
        self._resolver = value


state = AppState()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _duration_ms(t0: float) -> str:
    return f"{(time.perf_counter() - t0) * 1000:.0f}ms"


def _opt(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ── Lookup handling ──────────────────────────────────────────────────────────


async def _handle_lookup(params: dict, method: str) -> JSONResponse:
    t0 = time.perf_counter()
    name = _opt(params.get("name"))
    role_raw = _opt(params.get("type"))
    constituency = _opt(params.get("constituency"))
    state_hint = _opt(params.get("state"))

    if not name or not role_raw:
        LOGGER.warning("Rejected lookup: name=%r type=%r", name, role_raw)
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": {
                    "message": "Missing required parameters",
                    "details": 'Both "name" and "type" are required',
                    "location": "validation",
                    "code": "MISSING_REQUIRED_PARAMS",
                },
                "received": params,
                "required": {"name": name, "type": role_raw},
                "optional": {"constituency": constituency, "state": state_hint},
                "usage": {
                    "minimumExample": {"name": "Rahul Gandhi", "type": MP},
                    "fullExample": {
                        "name": "Rahul Gandhi",
                        "type": MP,
                        "constituency": "Rae Bareli",
                        "state": "Uttar Pradesh",
                    },
                    "method": method,
                },
                "timestamp": _now_iso(),
            },
        )

    role = role_raw.upper()
    if role not in ROLES:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": {
                    "message": "Invalid type parameter",
                    "details": 'Type must be either "MP" or "MLA"',
                    "location": "validation",
                    "code": "INVALID_TYPE",
                },
                "received": {
                    "name": name,
                    "type": role_raw,
                    "constituency": constituency,
                    "state": state_hint,
                },
                "validation": {
                    "providedType": role_raw,
                    "allowedTypes": list(ROLES),
                    "caseSensitive": False,
                },
                "timestamp": _now_iso(),
            },
        )

    query = NameQuery(name=name, role=role, constituency=constituency, state=state_hint)
    processed = {"name": name, "type": role, "constituency": constituency, "state": state_hint}

    try:
        result = await run_in_threadpool(state.resolver.resolve, query)
    except Exception as exc:
        LOGGER.exception("Lookup failed for %r (%s)", name, role)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {
                    "message": "An unexpected error occurred",
                    "technicalMessage": str(exc),
                    "type": type(exc).__name__,
                    "location": "fetching_data",
                    "code": "INTERNAL_ERROR",
                },
                "received": params,
                "performance": {"duration": _duration_ms(t0), "failedAt": "fetching_data"},
            },
        )

    state.lookups += 1
    if result.found:
        state.found += 1
        meta = {
            "searchedAs": result.searched_as,
            "foundAs": result.found_as,
            "source": SOURCE_NAME,
            "sourceUrl": result.source_url,
            "scrapedAt": _now_iso(),
            "urlsChecked": result.total_urls_checked,
        }
        if result.role_switched:
            meta["note"] = f"Searched as {result.searched_as}, but found as {result.found_as}"
        LOGGER.info("Found %r as %s in %s", name, result.found_as, _duration_ms(t0))
        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "data": result.profile.to_dict(),
                "meta": meta,
                "request": {"received": params, "processed": processed},
                "performance": {"duration": _duration_ms(t0), "timestamp": _now_iso()},
            },
        )

    LOGGER.info("No match for %r (%s) in %s", name, role, _duration_ms(t0))
    return JSONResponse(
        status_code=404,
        content={
            "success": False,
            "error": {
                "message": "Member not found",
                "details": f"No matching member found in {SOURCE_NAME} database",
                "location": "data_not_found",
                "code": "NOT_FOUND",
            },
            "data": result.profile.to_dict(),
            "received": params,
            "searched": {
                "name": name,
                "type": role,
                "constituency": constituency or "N/A (not specified)",
                "state": state_hint or "N/A (not specified)",
                "urlsChecked": list(result.urls_checked),
                "totalUrlsChecked": result.total_urls_checked,
            },
            "suggestions": [
                "Verify the spelling of the name",
                'Try the full name, e.g. "Narendra Damodardas Modi", or the common name',
                "Check if the member sits in the current Lok Sabha (for MPs)",
                f"Try the alternate type: {opposite_role(role)}",
                f"For {MLA}s, ensure the state legislature is tracked by PRS",
            ],
            "performance": {"duration": _duration_ms(t0), "timestamp": _now_iso()},
        },
    )


app = FastAPI(title="PRS Member Lookup")

# ── CORS middleware ──────────────────────────────────────────────────────────
_cors_origins = [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API key authentication middleware ────────────────────────────────────────
@app.middleware("http")
async def _api_key_middleware(request: Request, call_next) -> Response:  # type: ignore[no-untyped-def]
    """Require ``X-API-Key`` header when ``PRS_API_KEY`` env var is set.

    Skips auth for the health endpoint and for OPTIONS (CORS preflight).
    """
    if API_KEY:
        exempt = {"/health", "/docs", "/openapi.json", "/redoc"}
        if request.url.path not in exempt and request.method != "OPTIONS":
            provided = request.headers.get("X-API-Key", "")
            if provided != API_KEY:
                return JSONResponse(
                    status_code=401,
                    content={"detail": "Invalid or missing API key"},
                )
    return await call_next(request)


# ── Request logging middleware ───────────────────────────────────────────────
@app.middleware("http")
async def _request_logging_middleware(request: Request, call_next) -> Response:  # type: ignore[no-untyped-def]
    """Log every request with method, path, and response time."""
    t0 = time.perf_counter()
    response: Response = await call_next(request)
    elapsed_ms = (time.perf_counter() - t0) * 1000
    LOGGER.info(
        "%s %s %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


# ── Endpoints ────────────────────────────────────────────────────────────────
@app.get("/member")
async def member_lookup_get(request: Request) -> JSONResponse:
    return await _handle_lookup(dict(request.query_params), "GET")


@app.post("/member")
async def member_lookup_post(request: Request) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        LOGGER.warning("POST /member body is not valid JSON")
        body = None
    params = body if isinstance(body, dict) else {}
    return await _handle_lookup(params, "POST")


@app.get("/health")
async def health() -> dict:
    """Service health check with lookup counters."""
    return {
        "status": "ok",
        "lookups": state.lookups,
        "found": state.found,
    }
