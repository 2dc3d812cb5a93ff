# Services package init
"""
OwnerGate Backend: Services Layer
==================================

Service Inventory:
    - store.py:           EntityStore contract, SQLAlchemyEntityStore, DataStore
    - access_control.py:  EntityPolicy, OwnershipScopedRepository, AccessControlService
    - identity.py:        CallerIdentity and session-token resolution

Services know nothing about HTTP, so every ownership rule can be tested
against an in-memory store without a server or a database.
"""
