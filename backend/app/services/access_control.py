"""
OwnerGate Backend: Application-Level Access Control
====================================================

What:  Mediates every read and write of users, projects, client profiles and
       invoices with an ownership predicate derived from the caller identity.
Why:   The relational store has no row-level security, so tenant isolation is
       enforced here instead of in the database.
How:   One generic OwnershipScopedRepository, parameterised by an EntityPolicy
       (entity name + owning key), wraps the EntityStore for each entity.
       AccessControlService builds one repository per entity for a single
       (caller_id, is_admin) pair and exposes named operations on top.
Who:   Constructed per request by the route dependency get_access_control().

Decision tree (every operation):

    is_admin? ──yes──▶ pass filter/payload to the store unmodified
        │no
    caller_id? ──no──▶ UnauthenticatedError (store is never called)
        │yes
    filter ∩ {owning_key: caller_id} ──▶ store
        │ single-record miss
        ▼
    AccessDeniedError ("not found" and "not yours" are the same error)

Check-then-act:
    update() and delete() look the record up with the scoped filter first,
    then mutate with the scoped filter again. The two calls are not atomic.
    The gap is accepted because owning keys are never reassigned (non-admin
    payloads cannot touch them, and no transfer operation exists). If a
    transfer operation is ever added, replace this with a single
    conditional update inside a transaction.

References:
    A non-admin create or update that sets a referencing field (an invoice's
    client_id) must point it at a record the caller owns, or it is denied
    before the write.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from app.exceptions import AccessDeniedError, NotFoundError, UnauthenticatedError
from app.services.store import DataStore, EntityStore, Where, as_dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityPolicy:
    """
    How ownership applies to one entity kind.

    Attributes:
        entity:               Entity name, also the DataStore attribute
        owning_key:           Field whose value must equal the caller id
        self_service_create:  Non-admins may create (owning key forced to themselves)
        self_service_delete:  Non-admins may delete records they own
        protected_fields:     Fields a non-admin update may not set, besides the owning key
        references:           (field, entity) pairs; a non-admin write may only point
                              the field at a record of that entity the caller owns
    """

    entity: str
    owning_key: str
    self_service_create: bool = True
    self_service_delete: bool = True
    protected_fields: Tuple[str, ...] = ()
    references: Tuple[Tuple[str, str], ...] = ()

    @property
    def owner_is_identity(self) -> bool:
        """True when the record's own id is the owning key (the User entity)."""
        return self.owning_key == "id"


USER_POLICY = EntityPolicy(
    entity="user",
    owning_key="id",
    self_service_create=False,
    self_service_delete=False,
    protected_fields=("role",),
)
PROJECT_POLICY = EntityPolicy(entity="project", owning_key="user_id")
CLIENT_PROFILE_POLICY = EntityPolicy(entity="client_profile", owning_key="user_id")
INVOICE_POLICY = EntityPolicy(
    entity="invoice",
    owning_key="user_id",
    references=(("client_id", "client_profile"),),
)

POLICIES: Dict[str, EntityPolicy] = {
    policy.entity: policy
    for policy in (USER_POLICY, PROJECT_POLICY, CLIENT_PROFILE_POLICY, INVOICE_POLICY)
}


class OwnershipScopedRepository:
    """
    Ownership-scoped accessor for one entity kind and one caller.

    Holds no state besides the store handle, the policy, the identity pair
    and the repositories its references resolve through, all fixed when
    the owning AccessControlService is built.
    """

    def __init__(
        self,
        store: EntityStore,
        policy: EntityPolicy,
        caller_id: Optional[str] = None,
        is_admin: bool = False,
    ):
        self._store = store
        self._policy = policy
        self._caller_id = caller_id
        self._is_admin = is_admin
        self._referenced: Dict[str, "OwnershipScopedRepository"] = {}

    @property
    def policy(self) -> EntityPolicy:
        return self._policy

    def link(self, field: str, repository: "OwnershipScopedRepository") -> None:
        """Resolve `field` values through `repository` on non-admin writes."""
        self._referenced[field] = repository

    # ── Protocol helpers ──────────────────────────────────────────────────

    def _require_identity(self, operation: str) -> str:
        if self._caller_id is None:
            logger.info(
                "Rejected unauthenticated %s.%s", self._policy.entity, operation
            )
            raise UnauthenticatedError(
                context={"entity": self._policy.entity, "operation": operation}
            )
        return self._caller_id

    def _deny(self, operation: str, where: Optional[Where] = None) -> AccessDeniedError:
        logger.warning(
            "Access denied: caller=%s %s.%s where=%s",
            self._caller_id,
            self._policy.entity,
            operation,
            dict(where or {}),
        )
        return AccessDeniedError(
            entity=self._policy.entity,
            context={"operation": operation, "caller_id": self._caller_id},
        )

    def scope(self, where: Optional[Where], caller_id: str) -> Dict[str, Any]:
        """
        Intersect a caller filter with the ownership constraint.

        The owning key is written after the caller's keys, so a conflicting
        value supplied by the caller (e.g. another user's id) is replaced
        rather than honoured.
        """
        scoped = as_dict(where)
        scoped[self._policy.owning_key] = caller_id
        return scoped

    def _owned_where(self, where: Where, caller_id: str, operation: str) -> Dict[str, Any]:
        """
        The filter a non-admin single-record operation runs with.

        When the owning key is the record id, a request for any other id is
        itself the denial; merging would silently retarget the caller's own row.
        """
        if self._policy.owner_is_identity and as_dict(where).get("id") != caller_id:
            raise self._deny(operation, where)
        return self.scope(where, caller_id)

    async def _check_references(
        self, data: Mapping[str, Any], caller_id: str, operation: str
    ) -> None:
        for field, _entity in self._policy.references:
            value = data.get(field)
            if value is None:
                continue
            if not await self._referenced[field].owns(value, caller_id):
                raise self._deny(operation, {field: value})

    async def owns(self, record_id: Any, caller_id: str) -> bool:
        return await self._store.find_unique(self.scope({"id": record_id}, caller_id)) is not None

    def _log_bypass(self, operation: str) -> None:
        logger.debug(
            "Admin bypass: caller=%s %s.%s", self._caller_id, self._policy.entity, operation
        )

    # ── Operations ────────────────────────────────────────────────────────

    async def find_many(self, where: Optional[Where] = None) -> List[Any]:
        """Every visible record matching `where`; an empty list when none match."""
        if self._is_admin:
            self._log_bypass("find_many")
            return await self._store.find_many(where)

        caller_id = self._require_identity("find_many")
        return await self._store.find_many(self.scope(where, caller_id))

    async def find_one(self, where: Where) -> Any:
        """
        A single visible record.

        Raises:
            NotFoundError: admin lookup matched nothing
            UnauthenticatedError: no caller identity
            AccessDeniedError: the record is missing or owned by someone else
        """
        if self._is_admin:
            self._log_bypass("find_one")
            record = await self._store.find_unique(where)
            if record is None:
                resource_id = where.get("id") if isinstance(where, Mapping) else None
                raise NotFoundError(
                    resource=self._policy.entity,
                    resource_id=str(resource_id) if resource_id is not None else None,
                )
            return record

        caller_id = self._require_identity("find_one")

        record = await self._store.find_unique(self._owned_where(where, caller_id, "find_one"))
        if record is None:
            raise self._deny("find_one", where)
        return record

    async def create(self, data: Mapping[str, Any]) -> Any:
        """
        Create a record owned by the caller.

        The owning key is overwritten with the caller id for every caller,
        admins included. Entities without self-service create (users) are
        admin-only and passed through unmodified.
        """
        caller_id = self._require_identity("create")

        if self._policy.owner_is_identity or not self._policy.self_service_create:
            if not self._is_admin:
                raise self._deny("create")
            self._log_bypass("create")
            return await self._store.create(data)

        payload = as_dict(data)
        supplied = payload.get(self._policy.owning_key)
        if supplied is not None and supplied != caller_id:
            logger.info(
                "Overriding %s.%s=%s with caller %s on create",
                self._policy.entity,
                self._policy.owning_key,
                supplied,
                caller_id,
            )
        payload[self._policy.owning_key] = caller_id
        if not self._is_admin:
            await self._check_references(payload, caller_id, "create")
        return await self._store.create(payload)

    async def update(self, where: Where, data: Mapping[str, Any]) -> Any:
        if self._is_admin:
            self._log_bypass("update")
            return await self._store.update(where, data)

        caller_id = self._require_identity("update")
        self._check_payload(data, caller_id, where)
        scoped = self._owned_where(where, caller_id, "update")
        await self._check_references(data, caller_id, "update")

        if await self._store.find_unique(scoped) is None:
            raise self._deny("update", where)
        # Scoped again so the write itself can only ever touch the caller's row
        return await self._store.update(scoped, data)

    async def delete(self, where: Where) -> Any:
        if self._is_admin:
            self._log_bypass("delete")
            return await self._store.delete(where)

        caller_id = self._require_identity("delete")
        if not self._policy.self_service_delete:
            raise self._deny("delete", where)

        scoped = self._owned_where(where, caller_id, "delete")
        if await self._store.find_unique(scoped) is None:
            raise self._deny("delete", where)
        return await self._store.delete(scoped)

    def _check_payload(self, data: Mapping[str, Any], caller_id: str, where: Where) -> None:
        """Non-admin updates may not reassign ownership or touch protected fields."""
        owner = data.get(self._policy.owning_key, caller_id)
        touched = [field for field in self._policy.protected_fields if field in data]
        if owner != caller_id or touched:
            raise self._deny("update", where)


class AccessControlService:
    """
    Per-request access-control facade over a DataStore.

    Construct one instance per authenticated request. The identity pair is
    read-only; never cache or share an instance between callers.

    Example:
        service = AccessControlService(DataStore.for_session(db), "user-1")
        project = await service.create_project({"name": "Site redesign"})
        await service.find_project({"id": project.id})
    """

    def __init__(
        self,
        store: DataStore,
        caller_id: Optional[str] = None,
        is_admin: bool = False,
    ):
        self._caller_id = caller_id
        self._is_admin = bool(is_admin)
        self._repositories: Dict[str, OwnershipScopedRepository] = {
            entity: OwnershipScopedRepository(
                store.for_entity(entity), policy, caller_id, self._is_admin
            )
            for entity, policy in POLICIES.items()
        }
        for repository in self._repositories.values():
            for field, entity in repository.policy.references:
                repository.link(field, self._repositories[entity])

    @property
    def caller_id(self) -> Optional[str]:
        return self._caller_id

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    def repository(self, entity: str) -> OwnershipScopedRepository:
        try:
            return self._repositories[entity]
        except KeyError:
            raise KeyError(f"No access policy for entity '{entity}'") from None

    @property
    def users(self) -> OwnershipScopedRepository:
        return self._repositories["user"]

    @property
    def projects(self) -> OwnershipScopedRepository:
        return self._repositories["project"]

    @property
    def client_profiles(self) -> OwnershipScopedRepository:
        return self._repositories["client_profile"]

    @property
    def invoices(self) -> OwnershipScopedRepository:
        return self._repositories["invoice"]

    # ── Users ─────────────────────────────────────────────────────────────

    async def find_users(self, where: Optional[Where] = None) -> List[Any]:
        return await self.users.find_many(where)

    async def find_user(self, where: Where) -> Any:
        return await self.users.find_one(where)

    async def create_user(self, data: Mapping[str, Any]) -> Any:
        return await self.users.create(data)

    async def update_user(self, where: Where, data: Mapping[str, Any]) -> Any:
        return await self.users.update(where, data)

    async def delete_user(self, where: Where) -> Any:
        return await self.users.delete(where)

    # ── Projects ──────────────────────────────────────────────────────────

    async def find_projects(self, where: Optional[Where] = None) -> List[Any]:
        return await self.projects.find_many(where)

    async def find_project(self, where: Where) -> Any:
        return await self.projects.find_one(where)

    async def create_project(self, data: Mapping[str, Any]) -> Any:
        return await self.projects.create(data)

    async def update_project(self, where: Where, data: Mapping[str, Any]) -> Any:
        return await self.projects.update(where, data)

    async def delete_project(self, where: Where) -> Any:
        return await self.projects.delete(where)

    # ── Client profiles ───────────────────────────────────────────────────

    async def find_client_profiles(self, where: Optional[Where] = None) -> List[Any]:
        return await self.client_profiles.find_many(where)

    async def find_client_profile(self, where: Where) -> Any:
        return await self.client_profiles.find_one(where)

    async def create_client_profile(self, data: Mapping[str, Any]) -> Any:
        return await self.client_profiles.create(data)

    async def update_client_profile(self, where: Where, data: Mapping[str, Any]) -> Any:
        return await self.client_profiles.update(where, data)

    async def delete_client_profile(self, where: Where) -> Any:
        return await self.client_profiles.delete(where)

    # ── Invoices ──────────────────────────────────────────────────────────

    async def find_invoices(self, where: Optional[Where] = None) -> List[Any]:
        return await self.invoices.find_many(where)

    async def find_invoice(self, where: Where) -> Any:
        return await self.invoices.find_one(where)

    async def create_invoice(self, data: Mapping[str, Any]) -> Any:
        return await self.invoices.create(data)

    async def update_invoice(self, where: Where, data: Mapping[str, Any]) -> Any:
        return await self.invoices.update(where, data)

    async def delete_invoice(self, where: Where) -> Any:
        return await self.invoices.delete(where)
