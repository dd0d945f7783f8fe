"""
JWKS client package.

Retrieves and caches JSON Web Key Sets used to verify JWT signatures.

Key points:
- Network fetches are bounded by a timeout; failures become
  authentication failures.
- Keys are cached for a configurable TTL; an unknown kid forces one
  refresh so rotated keys are picked up.
"""
