"""
Inkwell Backend — Middleware Package
======================================

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any work
    2. Request ID: correlation id for every log line of the request
    3. Logging: one access line with status and duration
"""
