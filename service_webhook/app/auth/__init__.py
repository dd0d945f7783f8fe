"""
Bearer token authentication.

Validates the `Authorization: Bearer <jwt>` header of each delivery:
signature against the JWKS key named by the token's `kid`, expiry,
audience, and issuer. Every failure surfaces as AuthenticationError.
"""
