"""
Storefront Backend — Middleware Package
========================================

Middleware Chain (request direction):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → [Bearer Guard] → Route Handler

Request ID runs first so the access log line and any error envelope carry
the same correlation ID. The bearer guard rejects anonymous writes to
/api/product/ before their multipart body is read.
"""
