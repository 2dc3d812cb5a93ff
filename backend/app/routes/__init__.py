# Routes package init
"""
OwnerGate Backend: API Routes Package
======================================

Route Inventory:
    - auth.py:     GET /api/auth/me                 (resolved caller identity)
    - users.py:    /api/users[/{id}]                (user records)
    - records.py:  /api/projects[/{id}]             (router factory for owned records)
                   /api/client-profiles[/{id}]
                   /api/invoices[/{id}]
    - health.py:   GET /health                      (database probe)

Design Principle:
    Routes stay thin. They parse the request, call the per-request
    AccessControlService from dependencies.py, and shape the response.
    No route talks to the store directly.
"""
