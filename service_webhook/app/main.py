"""
Event Grid webhook receiver service.
"""

import json
from typing import Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import WebhookConfig, get_config
from shared.errors import ValidationError
from .auth.authenticator import TokenAuthenticator
from .events.router import EventRouter
from .jwks.client import JWKSClient


class WebhookService(BaseService):
    """Webhook service implementation."""

    def __init__(
        self,
        config: Optional[WebhookConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or get_config()
        super().__init__(config.service_name, config)

        self.jwks_client = JWKSClient(
            config.jwks_url,
            timeout=config.jwks_timeout_seconds,
            cache_ttl=config.jwks_cache_ttl_seconds,
            transport=transport,
            metrics=self.metrics,
        )
        self.authenticator = TokenAuthenticator(
            self.jwks_client,
            audience=config.aad_client_id,
            issuer=config.expected_issuer,
            metrics=self.metrics,
        )
        self.event_router = EventRouter(
            max_batch_size=config.max_batch_size,
            metrics=self.metrics,
        )

        self._setup_webhook_routes()

    def _setup_webhook_routes(self):
        """Set up webhook-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "Event Grid Webhook Receiver",
                "version": "1.0.0"
            }

        @self.app.post("/api/webhook")
        async def receive_events(request: Request):
            """Event Grid delivery endpoint."""
            await self.authenticator.authenticate(request.headers)

            try:
                body = await request.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise ValidationError("Request body is not valid JSON", details={"error": str(exc)}) from exc

            ack = self.event_router.route(body)
            return JSONResponse(status_code=ack.status_code, content=ack.body)

    async def _check_dependencies(self):
        """Check webhook dependencies."""
        return {"jwks": await self.jwks_client.check_health()}


def create_app(
    config: Optional[WebhookConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
):
    """Create FastAPI application."""
    service = WebhookService(config, transport)
    return service.app


if __name__ == "__main__":
    service = WebhookService()
    service.run()
