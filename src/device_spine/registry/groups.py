"""Device groups and their indexed elements.

Element indexes come from the group's ``lastIndex`` counter, advanced with
the store's atomic ``find_one_and_increment``; each element receives the
value from before its increment. Indexes are never reused after removals.

Whole-document rewrites of a group (update, soft delete) are conditional on
the ``lastIndex`` they read, so they can never roll the counter back over
a concurrent allocation; a lost race is retried against the fresh document.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from device_spine.codecs import DeviceGroupCodec, DeviceGroupElementCodec, codec_for
from device_spine.codecs.base import CREATED_DATE
from device_spine.core.errors import (
    DuplicateKeyError,
    ErrorCode,
    NotFoundError,
    StorageError,
)
from device_spine.core.logging import get_logger
from device_spine.model.entities import DeviceGroup, DeviceGroupElement
from device_spine.model.enums import EntityType, GroupElementType
from device_spine.model.requests import DeviceGroupCreateRequest, DeviceGroupElementCreateRequest
from device_spine.persistence import primitives
from device_spine.persistence.indexes import GROUP_ELEMENTS, GROUPS
from device_spine.persistence.search import SearchCriteria, SearchResults
from device_spine.registry import logic
from device_spine.registry._base import RegistryRepository, live
from device_spine.store.protocols import ASCENDING, DESCENDING, Document

logger = get_logger(__name__)

_MAX_REWRITE_ATTEMPTS = 5


class GroupOperations(RegistryRepository):
    """Group CRUD, role lookup and indexed membership."""

    def assert_device_group(self, token: str | None, *, reference: bool = False):
        return self.assert_document(
            GROUPS,
            {DeviceGroupCodec.TOKEN: token},
            entity="device_group",
            key=token,
            code=ErrorCode.INVALID_DEVICE_GROUP_TOKEN,
            reference=reference,
        )

    def _rewrite_group(self, token: str, mutate: Callable[[DeviceGroup], None]) -> DeviceGroup:
        """Apply *mutate* and write the group back if ``lastIndex`` is unchanged."""
        codec = codec_for(EntityType.DEVICE_GROUP)
        groups = self.collection(GROUPS)
        for _ in range(_MAX_REWRITE_ATTEMPTS):
            existing = self.assert_device_group(token)
            group = self.decode(EntityType.DEVICE_GROUP, existing)
            mutate(group)
            document = codec.to_document(group)
            document["_id"] = existing["_id"]
            # Counter is owned by the allocator.
            document[DeviceGroupCodec.LAST_INDEX] = existing.get(DeviceGroupCodec.LAST_INDEX, 0)
            guard = {
                "_id": existing["_id"],
                DeviceGroupCodec.LAST_INDEX: existing.get(DeviceGroupCodec.LAST_INDEX, 0),
            }
            try:
                primitives.update(groups, guard, document, ErrorCode.DUPLICATE_DEVICE_GROUP_TOKEN)
            except NotFoundError:
                logger.debug("group_rewrite_retry", token=token)
                continue
            return self.decode(EntityType.DEVICE_GROUP, document)
        raise StorageError(
            f"Group {token!r} kept changing; gave up after {_MAX_REWRITE_ATTEMPTS} attempts"
        ).with_context(entity="device_group", key=token)

    # -- Groups ------------------------------------------------------------

    def create_device_group(self, request: DeviceGroupCreateRequest) -> DeviceGroup:
        group = logic.group_create_logic(request, self.actor)
        created = self.insert_entity(
            GROUPS, EntityType.DEVICE_GROUP, group, ErrorCode.DUPLICATE_DEVICE_GROUP_TOKEN
        )
        logger.info("group_created", token=created.token, roles=created.roles)
        return created

    def update_device_group(self, token: str, request: DeviceGroupCreateRequest) -> DeviceGroup:
        return self._rewrite_group(
            token, lambda group: logic.group_update_logic(group, request, self.actor)
        )

    def get_device_group(self, token: str) -> DeviceGroup | None:
        document = self.find_document(GROUPS, {DeviceGroupCodec.TOKEN: token})
        return self.decode(EntityType.DEVICE_GROUP, document) if document else None

    def list_device_groups(
        self, include_deleted: bool = False, criteria: SearchCriteria | None = None
    ) -> SearchResults[DeviceGroup]:
        return primitives.search(
            EntityType.DEVICE_GROUP,
            self.collection(GROUPS),
            live({}, include_deleted),
            [(CREATED_DATE, DESCENDING)],
            criteria,
        )

    def list_device_groups_with_role(
        self, role: str, include_deleted: bool = False, criteria: SearchCriteria | None = None
    ) -> SearchResults[DeviceGroup]:
        return primitives.search(
            EntityType.DEVICE_GROUP,
            self.collection(GROUPS),
            live({DeviceGroupCodec.ROLES: role}, include_deleted),
            [(CREATED_DATE, DESCENDING)],
            criteria,
        )

    def delete_device_group(self, token: str, force: bool = False) -> DeviceGroup:
        """Soft delete, or with *force* remove the group and all of its elements."""
        if not force:
            deleted = self._rewrite_group(token, lambda group: setattr(group, "deleted", True))
            logger.info("group_deleted", token=token, force=False)
            return deleted

        existing = self.assert_device_group(token)
        primitives.delete(self.collection(GROUPS), existing)
        removed = primitives.delete_matching(
            self.collection(GROUP_ELEMENTS), {DeviceGroupElementCodec.GROUP_TOKEN: token}
        )
        logger.info("group_deleted", token=token, force=True, elements_removed=removed)
        return self.decode(EntityType.DEVICE_GROUP, existing)

    # -- Elements ----------------------------------------------------------

    def _element_query(self, group_token: str, request: DeviceGroupElementCreateRequest) -> dict:
        return {
            DeviceGroupElementCodec.GROUP_TOKEN: group_token,
            DeviceGroupElementCodec.TYPE: GroupElementType(request.type).value,
            DeviceGroupElementCodec.ELEMENT_ID: request.element_id,
        }

    def _assert_element_target(self, request: DeviceGroupElementCreateRequest) -> None:
        if GroupElementType(request.type) == GroupElementType.DEVICE:
            self.assert_device(request.element_id, reference=True)
        else:
            self.assert_device_group(request.element_id, reference=True)

    def _next_group_index(self, group: Document) -> int:
        before = self.collection(GROUPS).find_one_and_increment(
            {"_id": group["_id"]}, DeviceGroupCodec.LAST_INDEX, 1
        )
        if before is None:
            raise NotFoundError(
                f"Group {group.get(DeviceGroupCodec.TOKEN)!r} vanished during element add",
                code=ErrorCode.INVALID_DEVICE_GROUP_TOKEN,
            )
        return int(before.get(DeviceGroupCodec.LAST_INDEX) or 0)

    def _add_element(
        self, group: Document, group_token: str, request: DeviceGroupElementCreateRequest
    ) -> DeviceGroupElement:
        elements = self.collection(GROUP_ELEMENTS)
        query = self._element_query(group_token, request)
        element_type = query[DeviceGroupElementCodec.TYPE]
        with self.locks.hold(f"group-element:{group_token}:{element_type}:{request.element_id}"):
            # Checked before allocation so a rejected duplicate never burns an index.
            if elements.count(query) > 0:
                raise DuplicateKeyError(
                    f"{request.element_id!r} is already in group {group_token!r}",
                    code=ErrorCode.DUPLICATE_GROUP_ELEMENT,
                ).with_context(entity="device_group_element", key=request.element_id)
            index = self._next_group_index(group)
            element = logic.group_element_create_logic(request, group_token, index)
            return self.insert_entity(
                GROUP_ELEMENTS,
                EntityType.DEVICE_GROUP_ELEMENT,
                element,
                ErrorCode.DUPLICATE_GROUP_ELEMENT,
            )

    def add_device_group_elements(
        self,
        group_token: str,
        requests: Sequence[DeviceGroupElementCreateRequest],
        ignore_duplicates: bool = False,
    ) -> list[DeviceGroupElement]:
        """Append elements to a group in request order.

        A duplicate aborts the rest of the batch unless *ignore_duplicates*
        is set, in which case it is skipped. Elements written before an
        abort stay written; the returned list holds only what was written.
        """
        group = self.assert_device_group(group_token)
        if group.get("deleted"):
            raise NotFoundError(
                f"Group {group_token!r} is deleted", code=ErrorCode.INVALID_DEVICE_GROUP_TOKEN
            ).with_context(entity="device_group", key=group_token)

        added: list[DeviceGroupElement] = []
        for request in requests:
            self._assert_element_target(request)
            try:
                added.append(self._add_element(group, group_token, request))
            except DuplicateKeyError:
                if not ignore_duplicates:
                    raise
                logger.debug(
                    "group_element_duplicate_skipped",
                    group_token=group_token,
                    element_id=request.element_id,
                )
        logger.info("group_elements_added", group_token=group_token, count=len(added))
        return added

    def remove_device_group_elements(
        self, group_token: str, requests: Sequence[DeviceGroupElementCreateRequest]
    ) -> list[DeviceGroupElement]:
        """Remove matching elements; returns the ones this call actually deleted."""
        elements = self.collection(GROUP_ELEMENTS)
        removed: list[DeviceGroupElement] = []
        for request in requests:
            for document in elements.find(self._element_query(group_token, request)):
                if primitives.delete(elements, document) > 0:
                    removed.append(self.decode(EntityType.DEVICE_GROUP_ELEMENT, document))
        logger.info("group_elements_removed", group_token=group_token, count=len(removed))
        return removed

    def list_device_group_elements(
        self, group_token: str, criteria: SearchCriteria | None = None
    ) -> SearchResults[DeviceGroupElement]:
        return primitives.search(
            EntityType.DEVICE_GROUP_ELEMENT,
            self.collection(GROUP_ELEMENTS),
            {DeviceGroupElementCodec.GROUP_TOKEN: group_token},
            [(DeviceGroupElementCodec.INDEX, ASCENDING)],
            criteria,
        )


__all__ = ["GroupOperations"]
