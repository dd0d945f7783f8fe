"""
Webhook Service package for the Event Grid receiver.

This package exposes the FastAPI application that accepts Event Grid
deliveries. It is intentionally small and focused:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.auth: Bearer token extraction and JWT verification.
- app.jwks: JWKS client for fetching and caching signing keys.
- app.events: Envelope validation and event classification.

Design notes:
- Module import must not perform network calls. All IO happens in route
  handlers.
- Use the shared/ utilities for logging, metrics, config, and errors.
- The only state kept across requests is the signing key cache.
"""
