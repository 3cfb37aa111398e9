"""Access-control service.

Single entry point bundling resolution and filtering against one
permission store. Usable inside the HTTP pipeline or on its own, e.g. to
filter rows in a batch job.
"""

from typing import TYPE_CHECKING, Any, Iterable, Optional, Set

from ...common.logger import get_logger
from .catalog import SensitiveFieldCatalog, default_catalog
from .permissions import Caller, Operation, PermissionLevel, ResolvedPermission
from .request_filter import RequestFilter
from .resolver import OperationLike, resolve_permission, role_level
from .response_filter import ResponseFilter

if TYPE_CHECKING:
    from ..store.base import PermissionStore

logger = get_logger("abac_service")


class ABACService:
    """Resolves permissions and filters payloads for callers."""

    def __init__(
        self,
        store: "PermissionStore",
        catalog: Optional[SensitiveFieldCatalog] = None,
        *,
        single_record_fallback: str = "original",
    ):
        self.store = store
        self.catalog = catalog or default_catalog
        self.response_filter = ResponseFilter(store, self.catalog, single_record_fallback)
        self.request_filter = RequestFilter(store, self.catalog)

    async def resolve(
        self, resource_name: str, role_names: Iterable[str], operation: OperationLike
    ) -> ResolvedPermission:
        resource = await self.store.get_resource_by_name(resource_name)
        return resolve_permission(resource, role_names, operation)

    async def can_access_resource(
        self, role_name: Optional[str], resource_name: str, operation: OperationLike
    ) -> bool:
        return await self.request_filter.can_access_resource(role_name, resource_name, operation)

    async def check_delete(self, resource_name: str, caller: Caller) -> None:
        """Raise AccessDenied unless the primary role may delete from the resource."""
        await self.request_filter.check_primary_role(resource_name, caller, Operation.DELETE)

    async def filter_output(self, resource_name: str, payload: Any, caller: Caller) -> Any:
        return await self.response_filter.filter_output(resource_name, payload, caller)

    async def filter_input(
        self,
        resource_name: str,
        payload: Any,
        caller: Caller,
        operation: OperationLike = Operation.WRITE,
    ) -> Any:
        return await self.request_filter.filter_input(resource_name, payload, caller, operation)

    async def check_raw_input(
        self,
        resource_name: str,
        caller: Caller,
        operation: OperationLike = Operation.WRITE,
    ) -> None:
        """Raise AccessDenied unless the caller may send an unparseable body."""
        await self.request_filter.check_raw_input(resource_name, caller, operation)

    async def can_modify_attribute(
        self, role_name: str, resource_name: str, attribute_name: str
    ) -> bool:
        """Check if a role may modify one attribute of a resource.

        Attributes carry no policy of their own yet: any non-blocked write
        permission on the resource covers every attribute.
        """
        resource = await self.store.get_resource_by_name(resource_name)
        level = role_level(resource, role_name, Operation.WRITE)
        can_modify = level is not PermissionLevel.BLOCKED
        logger.debug(
            f"Role {role_name} {'may' if can_modify else 'may not'} modify "
            f"'{resource_name}.{attribute_name}'"
        )
        return can_modify

    async def sensitive_attributes(self, resource_name: str) -> Set[str]:
        """Field names of a resource's attributes flagged sensitive."""
        resource = await self.store.get_resource_by_name(resource_name)
        if resource is None or resource.id is None:
            return set()
        attributes = await self.store.get_attributes_by_resource(resource.id)
        return {a.field_name for a in attributes if a.is_sensitive}


async def filter_output(
    store: "PermissionStore",
    resource_name: str,
    payload: Any,
    caller: Caller,
    catalog: Optional[SensitiveFieldCatalog] = None,
) -> Any:
    """Filter outbound data without building a service or pipeline."""
    return await ResponseFilter(store, catalog or default_catalog).filter_output(
        resource_name, payload, caller
    )
