"""Site and zone operations."""

from __future__ import annotations

from device_spine.codecs import SiteCodec, ZoneCodec
from device_spine.codecs.base import CREATED_DATE
from device_spine.core.errors import ErrorCode
from device_spine.core.logging import get_logger
from device_spine.model.entities import Site, Zone
from device_spine.model.enums import EntityType
from device_spine.model.requests import SiteCreateRequest, ZoneCreateRequest
from device_spine.persistence import primitives
from device_spine.persistence.indexes import SITES, ZONES
from device_spine.persistence.search import SearchCriteria, SearchResults
from device_spine.registry import logic
from device_spine.registry._base import RegistryRepository, live
from device_spine.store.protocols import ASCENDING, DESCENDING

logger = get_logger(__name__)


class SiteOperations(RegistryRepository):
    """CRUD for sites and the zones drawn on them."""

    # -- Sites -------------------------------------------------------------

    def assert_site(self, token: str | None, *, reference: bool = False):
        return self.assert_document(
            SITES,
            {SiteCodec.TOKEN: token},
            entity="site",
            key=token,
            code=ErrorCode.INVALID_SITE_TOKEN,
            reference=reference,
        )

    def create_site(self, request: SiteCreateRequest) -> Site:
        site = logic.site_create_logic(request, self.actor)
        created = self.insert_entity(SITES, EntityType.SITE, site, ErrorCode.DUPLICATE_SITE_TOKEN)
        logger.info("site_created", token=created.token)
        return created

    def update_site(self, token: str, request: SiteCreateRequest) -> Site:
        existing = self.assert_site(token)
        site = logic.site_update_logic(self.decode(EntityType.SITE, existing), request, self.actor)
        return self.replace_entity(SITES, EntityType.SITE, existing, site)

    def get_site_by_token(self, token: str) -> Site | None:
        document = self.find_document(SITES, {SiteCodec.TOKEN: token})
        return self.decode(EntityType.SITE, document) if document else None

    def list_sites(
        self, criteria: SearchCriteria | None = None, *, include_deleted: bool = False
    ) -> SearchResults[Site]:
        return primitives.search(
            EntityType.SITE,
            self.collection(SITES),
            live({}, include_deleted),
            [(SiteCodec.NAME, ASCENDING)],
            criteria,
        )

    def delete_site(self, token: str, force: bool = False) -> Site:
        existing = self.assert_site(token)
        deleted = self.delete_entity(SITES, EntityType.SITE, existing, force)
        logger.info("site_deleted", token=token, force=force)
        return deleted

    # -- Zones -------------------------------------------------------------

    def assert_zone(self, token: str | None):
        return self.assert_document(
            ZONES,
            {ZoneCodec.TOKEN: token},
            entity="zone",
            key=token,
            code=ErrorCode.INVALID_ZONE_TOKEN,
        )

    def create_zone(self, site_token: str, request: ZoneCreateRequest) -> Zone:
        self.assert_site(site_token, reference=True)
        zone = logic.zone_create_logic(site_token, request, self.actor)
        created = self.insert_entity(ZONES, EntityType.ZONE, zone, ErrorCode.DUPLICATE_ZONE_TOKEN)
        logger.info("zone_created", token=created.token, site_token=site_token)
        return created

    def update_zone(self, token: str, request: ZoneCreateRequest) -> Zone:
        existing = self.assert_zone(token)
        zone = logic.zone_update_logic(self.decode(EntityType.ZONE, existing), request, self.actor)
        return self.replace_entity(ZONES, EntityType.ZONE, existing, zone)

    def get_zone(self, token: str) -> Zone | None:
        document = self.find_document(ZONES, {ZoneCodec.TOKEN: token})
        return self.decode(EntityType.ZONE, document) if document else None

    def list_zones(
        self, site_token: str, criteria: SearchCriteria | None = None
    ) -> SearchResults[Zone]:
        return primitives.search(
            EntityType.ZONE,
            self.collection(ZONES),
            live({ZoneCodec.SITE_TOKEN: site_token}),
            [(CREATED_DATE, DESCENDING)],
            criteria,
        )

    def delete_zone(self, token: str, force: bool = False) -> Zone:
        existing = self.assert_zone(token)
        return self.delete_entity(ZONES, EntityType.ZONE, existing, force)


__all__ = ["SiteOperations"]
