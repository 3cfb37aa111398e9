"""Outbound data filtering.

Applies the caller's resolved READ permission to the records a handler
returns:
  - blocked (or unconfigured resource): every record becomes {}
  - full:    records pass through unchanged
  - partial: sensitive fields are removed from every record
  - self:    only records owned by the caller are kept
"""

from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence

from ...common.logger import get_logger
from .catalog import SensitiveFieldCatalog, default_catalog
from .ownership import owns
from .permissions import Caller, Operation, PermissionLevel
from .resolver import PermissionResolver

if TYPE_CHECKING:
    from ..store.base import PermissionStore

logger = get_logger("response_filter")

SINGLE_RECORD_FALLBACKS = ("original", "empty")


class ResponseFilter:
    """Filters handler results by the caller's read permission."""

    def __init__(
        self,
        store: "PermissionStore",
        catalog: Optional[SensitiveFieldCatalog] = None,
        single_record_fallback: str = "original",
    ):
        """
        Args:
            store: Permission store to look resources up in
            catalog: Sensitive-field catalog (defaults to the built-in one)
            single_record_fallback: What a single record becomes when filtering
                drops it: "original" returns it unchanged, "empty" returns {}
        """
        if single_record_fallback not in SINGLE_RECORD_FALLBACKS:
            raise ValueError(
                f"Invalid single_record_fallback: {single_record_fallback}. "
                f"Must be one of: {', '.join(SINGLE_RECORD_FALLBACKS)}"
            )
        self.store = store
        self.catalog = catalog or default_catalog
        self.single_record_fallback = single_record_fallback

    async def filter_output(self, resource_name: str, payload: Any, caller: Caller) -> Any:
        """Filter a single record or a sequence of records.

        Values that are neither are returned as they are.
        """
        if isinstance(payload, Mapping):
            return await self.filter_record(resource_name, payload, caller)
        if isinstance(payload, (list, tuple)):
            return await self.filter_records(resource_name, payload, caller)
        return payload

    async def filter_record(self, resource_name: str, record: Mapping, caller: Caller) -> Any:
        filtered = await self.filter_records(resource_name, [record], caller)
        if filtered:
            return filtered[0]
        if self.single_record_fallback == "empty":
            return {}
        return record

    async def filter_records(
        self, resource_name: str, records: Sequence[Any], caller: Caller
    ) -> List[Any]:
        resource = await self.store.get_resource_by_name(resource_name)

        if resource is None or not resource.is_configured:
            logger.info(f"Resource '{resource_name}' is not configured, redacting all records")
            return [{} for _ in records]

        resolved = PermissionResolver(caller.roles).resolve(resource, Operation.READ)
        level = resolved.level
        logger.debug(
            f"Read on '{resource_name}' for caller {caller.id} resolved to {level.value}"
        )

        if level is PermissionLevel.FULL:
            return records if isinstance(records, list) else list(records)

        if level is PermissionLevel.PARTIAL:
            filtered = [self.catalog.redact(resource_name, record) for record in records]
            logger.debug(
                f"Redacted {sorted(self.catalog.fields_for(resource_name))} "
                f"from {len(filtered)} '{resource_name}' records"
            )
            return filtered

        if level is PermissionLevel.SELF:
            filtered = [record for record in records if owns(resource_name, record, caller)]
            logger.debug(
                f"Kept {len(filtered)} of {len(records)} '{resource_name}' records "
                f"owned by caller {caller.id}"
            )
            return filtered

        return [{} for _ in records]
