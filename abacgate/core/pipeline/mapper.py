"""Maps request paths and methods to protected resources.

Routes are matched by prefix in registration order and the first match
wins, so prefixes must not overlap ambiguously.
"""

from typing import Iterable, NamedTuple, Optional, Tuple

from ..abac.permissions import Operation


class ResourceRoute(NamedTuple):
    """Resource and logical operation a request maps to."""

    resource_name: str
    operation: Operation


DEFAULT_ROUTES: Tuple[Tuple[str, str], ...] = (
    ("/users", "users"),
    ("/roles", "roles"),
    ("/payrolls", "payrolls"),
)

BODY_METHODS = frozenset(["POST", "PUT", "PATCH"])


def operation_for_method(method: str) -> Operation:
    """Map an HTTP method to the operation tag.

    Only DELETE maps to delete; every other method, GET included, is tagged
    write. Output filtering always resolves read access regardless of the tag.
    """
    if method.upper() == "DELETE":
        return Operation.DELETE
    return Operation.WRITE


class PathResourceMapper:
    """Ordered prefix table from URL paths to resource names."""

    def __init__(
        self,
        routes: Iterable[Tuple[str, str]] = DEFAULT_ROUTES,
        base_path: str = "",
    ):
        """
        Args:
            routes: (path prefix, resource name) pairs, first match wins
            base_path: Mount prefix (e.g. "/api") stripped before matching
        """
        self.routes: Tuple[Tuple[str, str], ...] = tuple(routes)
        self.base_path = base_path.rstrip("/")

    def _strip(self, path: str) -> str:
        path = path.split("?", 1)[0]
        if self.base_path and path.startswith(self.base_path):
            path = path[len(self.base_path):] or "/"
        return path

    def map_path(self, path: str, method: str) -> Optional[ResourceRoute]:
        """Resolve (path, method) to a resource route, or None when unmapped."""
        path = self._strip(path)
        for prefix, resource_name in self.routes:
            if path.startswith(prefix):
                return ResourceRoute(resource_name, operation_for_method(method))
        return None
