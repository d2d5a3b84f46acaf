# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""HTTP service: classification, canary and health endpoints.

Routes:
  POST /industry/classify   ClassifyResult JSON (400 on bad body, 500 on failure)
  GET  /industry/canary     canary report through the full resolver
  GET  /health              liveness
  GET  /ready               503 until the industry config has been loaded

Every request gets an ``x-request-id`` (caller's, if well-formed) bound into
structlog contextvars and echoed on the response.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from industrylock.canary import run_canary
from industrylock.classifier import ClassifyRequest, IndustryClassifier
from industrylock.errors import RequestValidationError
from industrylock.kv_store import KVStoreProtocol
from industrylock.resolver import IndustryResolver
from industrylock.rule_store import IndustryConfig

logger = logging.getLogger(__name__)

_REQUEST_ID_RE = re.compile(r"^[a-zA-Z0-9._-]{1,128}$")
MAX_ERROR_LENGTH = 200
_PATH_RE = re.compile(r"(?:/[\w.-]+){2,}")


# ── Request context ──────────────────────────────────────────────────


def _sanitize_request_id(raw: str | None) -> str:
    """Caller's request ID if it is ``[a-zA-Z0-9._-]{1,128}``, else a fresh UUID."""
    if raw and _REQUEST_ID_RE.match(raw):
        return raw
    return uuid.uuid4().hex


class RequestContextMiddleware:
    """Pure ASGI middleware: request ID into log context and response headers."""

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw_rid = None
        for name, value in scope.get("headers", []):
            if name == b"x-request-id":
                raw_rid = value.decode("latin-1")
                break
        request_id = _sanitize_request_id(raw_rid)
        scope.setdefault("state", {})["request_id"] = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=scope.get("path", ""))

        async def _send_with_request_id(message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, _send_with_request_id)
        finally:
            structlog.contextvars.clear_contextvars()


# ── Helpers ──────────────────────────────────────────────────────────


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def sanitize_error(text: str) -> str:
    """Strip filesystem paths and truncate an exception message for clients."""
    text = _PATH_RE.sub("<path>", text)
    if len(text) > MAX_ERROR_LENGTH:
        text = text[:MAX_ERROR_LENGTH] + "..."
    return text


def parse_classify_request(body: Any) -> ClassifyRequest:
    """Validate a decoded JSON body. Raises ``RequestValidationError``."""
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")
    for name in ("domain", "root_url"):
        value = body.get(name)
        if not isinstance(value, str) or not value.strip():
            raise RequestValidationError("domain and root_url are required", field=name)
    try:
        return ClassifyRequest.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise RequestValidationError(f"Invalid field {loc}: {first.get('msg', 'invalid')}", field=loc) from e


# ── App factory ──────────────────────────────────────────────────────


def create_app(
    config: IndustryConfig,
    classifier: IndustryClassifier,
    resolver: IndustryResolver,
    *,
    kv_store: KVStoreProtocol | None = None,
) -> Starlette:
    """Build the Starlette app around already-constructed components.

    The lifespan loads *config* from *kv_store* on startup and closes the
    classifier's HTTP client and the store on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await config.load(kv_store)
        logger.info("Industry service started (kv_store=%s)", type(kv_store).__name__ if kv_store else "none")
        try:
            yield
        finally:
            await classifier.aclose()
            if kv_store is not None:
                await kv_store.close()
            logger.info("Industry service shutdown complete")

    async def classify(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _error("Request body must be JSON", 400)

        try:
            req = parse_classify_request(body)
        except RequestValidationError as e:
            return _error(str(e), 400, field=e.field)

        try:
            result = await classifier.classify(
                req.domain,
                req.root_url,
                site_description=req.site_description,
                crawl_budget=req.crawl_budget,
            )
        except Exception as e:
            logger.exception("Classification failed for %s", req.domain)
            return _error(sanitize_error(f"{type(e).__name__}: {e}"), 500)

        return JSONResponse(result.to_dict())

    async def canary(request: Request) -> JSONResponse:
        report = await run_canary(resolver)
        return JSONResponse(report.to_dict())

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    async def ready(request: Request) -> JSONResponse:
        if not config.loaded:
            return JSONResponse({"status": "not_ready"}, status_code=503)
        return JSONResponse({"status": "ready", "domain_rules": len(config.get_domain_rules())})

    app = Starlette(
        routes=[
            Route("/industry/classify", classify, methods=["POST"]),
            Route("/industry/canary", canary, methods=["GET"]),
            Route("/health", health, methods=["GET"]),
            Route("/ready", ready, methods=["GET"]),
        ],
        middleware=[Middleware(RequestContextMiddleware)],
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.classifier = classifier
    app.state.resolver = resolver
    return app
