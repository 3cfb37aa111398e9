from .auth import AuthenticationMiddleware
from .abac import ABACMiddleware

__all__ = ["ABACMiddleware", "AuthenticationMiddleware"]
