"""In-memory permission store."""

import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from ...common.logger import get_logger
from ..abac.permissions import Attribute, Resource
from .base import PermissionStore

logger = get_logger("memory_store")


class InMemoryPermissionStore(PermissionStore):
    """Dict-backed store, used for policy files, defaults and tests."""

    def __init__(
        self,
        resources: Iterable[Resource] = (),
        attributes: Iterable[Attribute] = (),
    ):
        self._resources: Dict[str, Resource] = {}
        self._attributes: List[Attribute] = []
        for resource in resources:
            self._add_resource(resource)
        for attribute in attributes:
            self._add_attribute(attribute)

    def _add_resource(self, resource: Resource) -> Resource:
        if resource.id is None:
            resource = replace(resource, id=str(uuid.uuid4()))
        if resource.name in self._resources:
            logger.warning(f"Overwriting existing resource: {resource.name}")
        self._resources[resource.name] = resource
        return resource

    def _add_attribute(self, attribute: Attribute) -> Attribute:
        if attribute.id is None:
            attribute = replace(attribute, id=str(uuid.uuid4()))
        self._attributes.append(attribute)
        return attribute

    async def get_resource_by_name(self, name: str) -> Optional[Resource]:
        return self._resources.get(name)

    async def get_attributes_by_resource(self, resource_id: str) -> List[Attribute]:
        return [a for a in self._attributes if a.resource_id == resource_id]

    async def get_resources(self) -> List[Resource]:
        return list(self._resources.values())

    async def create_resource(self, resource: Resource) -> Resource:
        return self._add_resource(resource)

    async def create_attribute(self, attribute: Attribute) -> Attribute:
        return self._add_attribute(attribute)
