"""Pytest configuration and shared fixtures."""

import asyncio

import pytest
from sqlalchemy.orm import sessionmaker

from abacgate.core.abac.defaults import get_all_default_resources, get_default_attributes
from abacgate.core.abac.permissions import Caller, PermissionLevel, Resource, ResourcePermission
from abacgate.core.store.memory import InMemoryPermissionStore
from abacgate.db.base import Base
from abacgate.db.session import make_engine


FULL = PermissionLevel.FULL
PARTIAL = PermissionLevel.PARTIAL
SELF = PermissionLevel.SELF
BLOCKED = PermissionLevel.BLOCKED


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


def make_resource(name, **roles):
    """Resource whose matrix is built from ROLE=(read, write, delete) tuples."""
    return Resource(
        name=name,
        table_name=name,
        id=name,
        role_permissions={role: ResourcePermission(*levels) for role, levels in roles.items()},
    )


@pytest.fixture
def default_store():
    """In-memory store holding the built-in users/roles/payrolls resources."""
    resources = get_all_default_resources()
    attributes = [a for r in resources for a in get_default_attributes(r.name)]
    return InMemoryPermissionStore(resources, attributes)


@pytest.fixture
def admin():
    return Caller(id="1", roles=("ADMIN",))


@pytest.fixture
def manager():
    return Caller(id="2", roles=("MANAGER",))


@pytest.fixture
def user():
    return Caller(id="1", roles=("USER",))


@pytest.fixture
def sample_users():
    return [
        {"id": "1", "name": "John", "email": "john@example.com", "salary": 50000, "password": "x"},
        {"id": "2", "name": "Jane", "email": "jane@example.com", "salary": 60000, "password": "y"},
        {"id": "3", "name": "Ann", "email": "ann@example.com", "salary": 70000, "password": "z"},
    ]


@pytest.fixture
def sample_payrolls():
    return [
        {"id": "10", "userId": "1", "amount": 4000, "bonus": 100, "description": "January"},
        {"id": "11", "userId": "2", "amount": 5000, "bonus": 200, "description": "January"},
        {"id": "12", "user_id": "1", "amount": 4100, "bonus": 0, "description": "February"},
    ]


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = make_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
