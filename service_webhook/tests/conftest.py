"""
Shared fixtures for webhook service tests.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from shared.config import WebhookConfig


CLIENT_ID = "7f4b2a9e-3c1d-4e8f-9a0b-1c2d3e4f5a6b"
TENANT_ID = "0d6c9a8b-1e2f-4a3b-8c7d-6e5f4a3b2c1d"
ISSUER = f"https://sts.windows.net/{TENANT_ID}/"
JWKS_URL = "https://login.example.test/discovery/keys"
KEY_ID = "test-key-1"


def _generate_private_pem() -> str:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def _public_jwk(private_pem: str, kid: str) -> Dict[str, Any]:
    key_data = jwk.construct(private_pem, "RS256").public_key().to_dict()
    key_data["kid"] = kid
    key_data["use"] = "sig"
    return key_data


@pytest.fixture(scope="session")
def signing_key_pem() -> str:
    """Private key whose public half is published in the JWKS."""
    return _generate_private_pem()


@pytest.fixture(scope="session")
def foreign_key_pem() -> str:
    """Private key that is not published anywhere."""
    return _generate_private_pem()


@pytest.fixture(scope="session")
def public_jwk(signing_key_pem) -> Dict[str, Any]:
    return _public_jwk(signing_key_pem, KEY_ID)


@pytest.fixture
def jwks_document(public_jwk) -> Dict[str, Any]:
    return {"keys": [public_jwk]}


@pytest.fixture
def make_token(signing_key_pem) -> Callable[..., str]:
    """Build a signed RS256 token; keyword arguments override claims;
    a claim set to None is left out."""

    def _make_token(
        key_pem: Optional[str] = None,
        kid: Optional[str] = KEY_ID,
        **overrides: Any,
    ) -> str:
        now = int(time.time())
        claims = {
            "aud": CLIENT_ID,
            "iss": ISSUER,
            "sub": "event-grid",
            "iat": now,
            "nbf": now,
            "exp": now + 3600,
        }
        claims.update(overrides)
        claims = {name: value for name, value in claims.items() if value is not None}
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(claims, key_pem or signing_key_pem, algorithm="RS256", headers=headers)

    return _make_token


class JWKSEndpoint:
    """In-process stand-in for the key discovery endpoint."""

    def __init__(self, document: Dict[str, Any]):
        self.document = document
        self.status_code = 200
        self.error: Optional[Exception] = None
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.document)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def jwks_endpoint(jwks_document) -> JWKSEndpoint:
    return JWKSEndpoint(jwks_document)


@pytest.fixture
def webhook_config() -> WebhookConfig:
    return WebhookConfig(
        aad_client_id=CLIENT_ID,
        aad_tenant_id=TENANT_ID,
        jwks_url=JWKS_URL,
        log_level="warning",
    )


def make_envelope(data: Dict[str, Any], /, **overrides: Any) -> Dict[str, Any]:
    envelope = {
        "id": "2d1781af-3a4c-4d7c-bd0c-e34b19da4e66",
        "topic": "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg/providers/Microsoft.Storage/storageAccounts/acct",
        "subject": "/blobServices/default/containers/container/blobs/blob",
        "data": data,
        "eventType": "Microsoft.Storage.BlobCreated",
        "eventTime": "2024-05-01T12:34:56.789Z",
        "metadataVersion": "1",
        "dataVersion": "",
    }
    envelope.update(overrides)
    return envelope


@pytest.fixture
def validation_data() -> Dict[str, Any]:
    return {
        "validationCode": "512d38b6-c7b8-40c8-89fe-f46f9e9622b6",
        "validationUrl": "https://rp-eastus2.eventgrid.azure.net:553/eventsubscriptions/estest/validate?id=512d38b6-c7b8-40c8-89fe-f46f9e9622b6&t=2018-04-26T20:30:54.4538837Z",
    }


@pytest.fixture
def blob_created_data() -> Dict[str, Any]:
    return {
        "api": "PutBlob",
        "clientRequestId": "6d79dbfb-0e37-4fc4-981f-442c9ca65760",
        "requestId": "831e1650-001e-001b-66ab-eeb76e000000",
        "eTag": "0x8D4BCC2E4835CD0",
        "contentType": "application/octet-stream",
        "contentLength": 524288,
        "blobType": "BlockBlob",
        "url": "https://acct.blob.core.windows.net/container/blob",
        "sequencer": "00000000000004420000000000028963",
        "storageDiagnostics": {
            "batchId": "b68529f3-68cd-4744-baa4-3c0498ec19f0"
        },
    }


@pytest.fixture
def validation_event(validation_data) -> Dict[str, Any]:
    return make_envelope(
        validation_data,
        eventType="Microsoft.EventGrid.SubscriptionValidationEvent",
        subject="",
        dataVersion="2",
    )


@pytest.fixture
def blob_created_event(blob_created_data) -> Dict[str, Any]:
    return make_envelope(blob_created_data)
