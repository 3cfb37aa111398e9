"""Base class for permission stores.

A permission store is the read model the access-control core consults:
resources with their role permission matrices, and attribute metadata.
Stores return None for "not found" and raise StoreLookupError when the
lookup itself fails; the core never converts one into the other.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..abac.errors import StoreLookupError
from ..abac.permissions import Attribute, Resource

__all__ = ["PermissionStore", "StoreLookupError"]


class PermissionStore(ABC):
    """Abstract permission store.

    Lookups are coroutines; implementations may block on I/O.
    """

    @abstractmethod
    async def get_resource_by_name(self, name: str) -> Optional[Resource]:
        """Get a resource by its unique name.

        Args:
            name: Resource name (e.g. "users")

        Returns:
            Resource, or None if no such resource exists

        Raises:
            StoreLookupError: If the backing store could not be queried
        """

    @abstractmethod
    async def get_attributes_by_resource(self, resource_id: str) -> List[Attribute]:
        """Get the attributes registered for a resource id."""

    @abstractmethod
    async def get_resources(self) -> List[Resource]:
        """Get all resources."""

    async def get_attribute_by_resource_and_field(
        self, resource_id: str, field_name: str
    ) -> Optional[Attribute]:
        """Get one attribute of a resource by its field name."""
        for attribute in await self.get_attributes_by_resource(resource_id):
            if attribute.field_name == field_name:
                return attribute
        return None

    async def create_resource(self, resource: Resource) -> Resource:
        """Register a resource. Read-only stores do not support this."""
        raise NotImplementedError(f"{type(self).__name__} is read-only")

    async def create_attribute(self, attribute: Attribute) -> Attribute:
        """Register an attribute. Read-only stores do not support this."""
        raise NotImplementedError(f"{type(self).__name__} is read-only")
