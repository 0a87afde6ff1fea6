"""
Curio Backend — Middleware Package
===================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route

    - Request ID is set first so 429 bodies and access lines carry it
    - Rate Limit rejects abusive clients before any route work is done
    - CORS is innermost so preflights from the extension are answered directly
"""
