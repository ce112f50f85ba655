"""
Notes API — Middleware Package
================================

Middleware Chain (outermost first):
    Request → [Recover] → [CORS] → [Request ID] → [Logging] → Router

    1. Recover: any exception escaping the inner layers becomes a 500
       envelope with `Connection: close`
    2. CORS: Vary on every response; trusted origins echoed; trusted
       preflights answered directly
    3. Request ID: correlation ID in a ContextVar and X-Request-ID header
    4. Logging: one access-log line per request
"""
