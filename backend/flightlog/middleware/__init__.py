# Middleware package init
"""
FlightLog Backend: Middleware Package
======================================

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - Rate Limit first: rejects abusive clients before any work is done
    - Request ID: correlation id stored in a ContextVar for every log line
    - Logging: method, path, status and duration once the response is ready
"""
