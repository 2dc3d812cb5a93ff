# Middleware package init
"""
OwnerGate Backend: Middleware Package
======================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Rate Limit] → [Access Log] → [Security Headers]
            → [GZip] → [CORS] → Route Handler

    1. Request ID first so that even a 429 carries a correlation ID
    2. Rate limit before any route work; keyed by caller, so it resolves
       the identity (memoised on request.state for everything after it)
    3. Access log records status, duration and caller
    4. Security headers are added to every response, errors included
"""
