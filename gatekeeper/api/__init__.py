"""Gatekeeper Authorization API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from gatekeeper import __version__
from gatekeeper.api.config import Settings
from gatekeeper.audit import AuditSink, FileAuditSink, LoggingAuditSink, MultiAuditSink
from gatekeeper.auth import (
    AuthenticationError,
    BadRequestError,
    JWTValidator,
    extract_principals,
    get_validator,
)
from gatekeeper.authz import AudienceRegistry, AuthzRequest, Doorman, LoadError
from gatekeeper.authz.conditions import ContextValue

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


# =============================================================================
# Request Models
# =============================================================================


class AllowedRequest(BaseModel):
    """Request for an authorization decision."""

    principals: list[str] = Field(
        default_factory=list,
        description="Principals (only when authentication is disabled)"
    )
    resource: str = Field(default="", description="Resource identifier")
    action: str = Field(default="", description="Action on the resource")
    context: dict[str, ContextValue] = Field(
        default_factory=dict,
        description="Attributes checked by policy conditions"
    )


class AllowedResponse(BaseModel):
    """Authorization decision."""

    allowed: bool
    principals: list[str]


# =============================================================================
# Application
# =============================================================================


def build_audit_sink(settings: Settings) -> AuditSink:
    if not settings.audit_enabled:
        return MultiAuditSink([])
    sink: AuditSink = LoggingAuditSink()
    if settings.audit_storage_path:
        sink = MultiAuditSink([sink, FileAuditSink(settings.audit_storage_path)])
    return sink


def create_app(
    settings: Settings | None = None,
    doorman: Doorman | None = None,
    validator: JWTValidator | None = None,
) -> FastAPI:
    """Create the API application.

    Args:
        settings: Application settings (read from environment if omitted)
        doorman: Engine to use; built from settings and loaded at startup if omitted
        validator: JWT validator; built from settings if omitted
    """
    settings = settings or Settings()
    if validator is None and settings.authentication_enabled:
        validator = get_validator(settings.jwt_issuer, settings.jwks_uri)

    load_at_startup = doorman is None
    if doorman is None:
        doorman = Doorman(
            AudienceRegistry(settings.policies),
            audit_sink=build_audit_sink(settings),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if load_at_startup:
            # A failure here is fatal: the service would deny everything.
            doorman.registry.load()
        if validator is not None:
            await validator.initialize()
        yield
        if validator is not None:
            await validator.close()

    app = FastAPI(
        title="Gatekeeper",
        description="Policy based authorization decisions",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.doorman = doorman
    app.state.validator = validator

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        logger.warning(
            "Rejected request on %s: %s", request.url.path, exc.message
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message, "code": exc.code},
            headers=headers,
        )

    @app.get("/__heartbeat__")
    async def heartbeat() -> dict[str, Any]:
        """Health check endpoint."""
        return {}

    @app.get("/__lbheartbeat__")
    async def lbheartbeat() -> dict[str, Any]:
        """Load balancer health check endpoint."""
        return {}

    @app.get("/__version__")
    async def version() -> dict[str, Any]:
        return {"name": "gatekeeper", "version": __version__}

    @app.post("/__reload__")
    def reload() -> JSONResponse:
        """Reload the policies files.

        On failure the previous policies keep serving.
        """
        try:
            doorman.registry.reload()
        except LoadError as e:
            logger.error("Failed to reload policies: %s", e.message)
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": e.message},
            )
        return JSONResponse(content={"success": True, "message": ""})

    @app.post("/allowed", response_model=AllowedResponse)
    async def allowed(body: AllowedRequest, request: Request) -> AllowedResponse:
        """Check if the caller is allowed to perform an action on a resource.

        The ``Origin`` header designates the audience (calling service).
        With authentication enabled, principals come from the JWT;
        otherwise they are read from the body.
        """
        origin = request.headers.get("Origin", "")

        if validator is not None:
            if body.principals:
                raise BadRequestError(
                    "Cannot submit principals with authentication enabled"
                )
            claims = await validator.extract_claims(request)
            principals = extract_principals(claims, origin)
        else:
            if not origin:
                raise BadRequestError()
            principals = body.principals

        context = dict(body.context)
        if request.client is not None:
            context["remoteIP"] = request.client.host

        principals = doorman.expand_principals(origin, principals)
        authz_request = AuthzRequest(
            principals=principals,
            resource=body.resource,
            action=body.action,
            context=context,
        )
        return AllowedResponse(
            allowed=doorman.is_allowed(origin, authz_request),
            principals=principals,
        )

    return app
