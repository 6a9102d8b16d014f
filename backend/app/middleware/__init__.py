# Middleware package init
"""
Places Backend: Middleware Package
====================================

Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and error bodies carry it.
"""
