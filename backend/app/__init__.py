"""
OwnerGate Backend: Application Package
=======================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │        Routes (API Layer)           │  ← HTTP concerns, identity dependency
    ├─────────────────────────────────────┤
    │   AccessControlService              │  ← ownership filter / admin bypass
    ├─────────────────────────────────────┤
    │   DataStore (EntityStore per kind)  │  ← generic CRUD over SQLAlchemy
    ├─────────────────────────────────────┤
    │   Models & Database                 │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘

Routes never reach the DataStore except through AccessControlService,
which is built per request from the caller's identity.
"""

__version__ = "1.0.0"
