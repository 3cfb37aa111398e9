"""Policy configuration for abacgate.

Handles loading of YAML policy documents: resources with their role
permission matrices and attributes, sensitive field overrides and the
path-to-resource route table.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..core.abac.catalog import SensitiveFieldCatalog, default_catalog
from ..core.abac.permissions import Attribute, Resource, parse_role_permissions
from ..core.pipeline.mapper import DEFAULT_ROUTES, PathResourceMapper
from ..core.store.memory import InMemoryPermissionStore


@dataclass
class AttributeConfig:
    """Configuration for a single resource attribute."""

    field_name: str
    name: str = ""
    is_sensitive: bool = False
    description: Optional[str] = None


@dataclass
class ResourceConfig:
    """Configuration for a protected resource."""

    name: str
    table_name: str = ""
    description: Optional[str] = None
    role_permissions: Optional[Dict[str, Any]] = None
    attributes: List[AttributeConfig] = field(default_factory=list)


@dataclass
class RouteConfig:
    """Maps a path prefix to a resource."""

    prefix: str
    resource: str


@dataclass
class PolicyConfig:
    """Top-level policy document."""

    resources: Dict[str, ResourceConfig] = field(default_factory=dict)
    sensitive_fields: Dict[str, List[str]] = field(default_factory=dict)
    routes: List[RouteConfig] = field(default_factory=list)


def parse_attribute_config(attribute_dict: Dict[str, Any]) -> AttributeConfig:
    """Parse an attribute configuration dictionary.

    Args:
        attribute_dict: Attribute configuration dictionary

    Returns:
        AttributeConfig instance
    """
    field_name = attribute_dict.get("field_name", attribute_dict.get("name", ""))
    return AttributeConfig(
        field_name=field_name,
        name=attribute_dict.get("name", field_name),
        is_sensitive=bool(attribute_dict.get("is_sensitive", False)),
        description=attribute_dict.get("description"),
    )


def parse_resource_config(name: str, resource_dict: Dict[str, Any]) -> ResourceConfig:
    """Parse a resource configuration dictionary.

    A resource without a role_permissions key stays unconfigured.

    Args:
        name: Resource name
        resource_dict: Resource configuration dictionary

    Returns:
        ResourceConfig instance
    """
    resource_dict = resource_dict or {}
    attributes = [
        parse_attribute_config(attribute_dict)
        for attribute_dict in resource_dict.get("attributes", []) or []
    ]
    role_permissions = resource_dict.get("role_permissions")
    if role_permissions is not None and not isinstance(role_permissions, dict):
        raise TypeError(
            f"role_permissions of '{name}' must be a mapping, "
            f"got {type(role_permissions).__name__}"
        )

    return ResourceConfig(
        name=name,
        table_name=resource_dict.get("table_name", name),
        description=resource_dict.get("description"),
        role_permissions=role_permissions,
        attributes=attributes,
    )


def parse_route_config(route_dict: Dict[str, Any]) -> RouteConfig:
    return RouteConfig(prefix=route_dict["prefix"], resource=route_dict["resource"])


def parse_policy(config_dict: Dict[str, Any]) -> PolicyConfig:
    """Parse the full policy dictionary.

    Args:
        config_dict: Full policy dictionary

    Returns:
        PolicyConfig instance
    """
    resources = {}
    for name, resource_dict in (config_dict.get("resources") or {}).items():
        resources[name] = parse_resource_config(name, resource_dict)

    sensitive_fields = {
        name: list(fields or [])
        for name, fields in (config_dict.get("sensitive_fields") or {}).items()
    }

    routes = [parse_route_config(route) for route in config_dict.get("routes") or []]

    return PolicyConfig(
        resources=resources,
        sensitive_fields=sensitive_fields,
        routes=routes,
    )


def load_config(config_path: str) -> Dict[str, Any]:
    """Load a policy document from YAML.

    Args:
        config_path: Path to policy file

    Returns:
        Policy dictionary

    Raises:
        FileNotFoundError: If policy file doesn't exist
        yaml.YAMLError: If policy file is invalid YAML
        TypeError: If the document root is not a mapping
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Policy file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Policy root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in string values."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_policy(config_path: str) -> PolicyConfig:
    """Load and parse a policy file into typed dataclasses."""
    return parse_policy(load_config(config_path))


def build_store(policy: PolicyConfig) -> InMemoryPermissionStore:
    """Build an in-memory permission store from a policy.

    Resource ids are the resource names so attributes can reference them
    before the store assigns anything.
    """
    resources = []
    attributes = []
    for name, resource_config in policy.resources.items():
        resources.append(
            Resource(
                name=name,
                table_name=resource_config.table_name or name,
                id=name,
                description=resource_config.description,
                role_permissions=parse_role_permissions(resource_config.role_permissions),
            )
        )
        for attribute_config in resource_config.attributes:
            attributes.append(
                Attribute(
                    name=attribute_config.name or attribute_config.field_name,
                    field_name=attribute_config.field_name,
                    resource_id=name,
                    is_sensitive=attribute_config.is_sensitive,
                    description=attribute_config.description,
                )
            )
    return InMemoryPermissionStore(resources, attributes)


def build_catalog(
    policy: PolicyConfig,
    base: SensitiveFieldCatalog = default_catalog,
) -> SensitiveFieldCatalog:
    """Sensitive field catalog with the policy's overrides applied."""
    if not policy.sensitive_fields:
        return base
    return base.with_overrides(policy.sensitive_fields)


def build_mapper(policy: PolicyConfig, base_path: str = "") -> PathResourceMapper:
    """Path mapper from the policy's routes, or the built-in routes when none."""
    routes: List[Tuple[str, str]] = [(route.prefix, route.resource) for route in policy.routes]
    return PathResourceMapper(routes or DEFAULT_ROUTES, base_path=base_path)
