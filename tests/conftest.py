"""Shared fixtures for the docmodel test suite."""

import pytest

from docmodel import (
    DocModelConfig, MappingConfig, MemoryCollection, AsyncMemoryCollection,
    clear_descriptor_cache, set_config,
)

@pytest.fixture(autouse=True)
def isolated_state():
    """Fresh descriptor cache and default configuration for every test."""
    clear_descriptor_cache()
    set_config(DocModelConfig())
    yield
    clear_descriptor_cache()
    set_config(None)

@pytest.fixture
def mapping():
    return MappingConfig()

@pytest.fixture
def strict_mapping():
    return MappingConfig(strict_fields=True)

@pytest.fixture
def users_collection():
    return MemoryCollection("users")

@pytest.fixture
def jedis_collection():
    return MemoryCollection("jedis")

@pytest.fixture
def async_jedis_collection():
    return AsyncMemoryCollection("jedis")
