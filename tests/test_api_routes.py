"""
Tests for the observer API routes.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from game_network.cloudprovider.registry import PluginRegistry
from game_network.cloudprovider.slb import SlbPlugin
from game_network.config.settings import Settings
from game_network.main import create_app

from conftest import FakeClusterClient, build_service
from test_registry import StubPlugin


@pytest.fixture
def registry():
    registry = PluginRegistry()
    registry.register(SlbPlugin())
    return registry


@pytest.fixture
def initialized_registry(registry, provider_options):
    cluster = FakeClusterClient(services=[
        build_service(name="gs-0", ports=[(500, "UDP", 7777), (501, "TCP", 8080)]),
        build_service(name="gs-1", lb_id="lb-2", ports=[(500, "UDP", 7777)]),
    ])
    asyncio.run(registry.get("AlibabaCloud-SLB").init(cluster, provider_options))
    return registry


def client_for(registry):
    return TestClient(create_app(registry, Settings()))


class TestHealth:
    """Test health endpoint."""

    def test_initializing(self, registry):
        response = client_for(registry).get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "initializing"
        assert data["plugins"] == {"AlibabaCloud-SLB": False}

    def test_ok(self, initialized_registry):
        response = client_for(initialized_registry).get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["plugins"] == {"AlibabaCloud-SLB": True}


class TestPlugins:
    """Test plugin endpoints."""

    def test_list_plugins(self, registry):
        response = client_for(registry).get("/plugins")

        assert response.status_code == 200
        assert response.json()["plugins"] == [
            {"name": "AlibabaCloud-SLB", "alias": "LB-Network", "initialized": False}
        ]

    def test_port_usage(self, initialized_registry):
        response = client_for(initialized_registry).get("/plugins/LB-Network/ports")

        assert response.status_code == 200
        data = response.json()
        assert data["plugin"] == "AlibabaCloud-SLB"
        assert data["min_port"] == 500
        assert data["max_port"] == 700
        assert data["load_balancers"] == [
            {
                "lb_id": "lb-1",
                "total_ports": 200,
                "allocated_ports": 2,
                "available_ports": 198,
                "allocation_percentage": 1.0,
            },
            {
                "lb_id": "lb-2",
                "total_ports": 200,
                "allocated_ports": 1,
                "available_ports": 199,
                "allocation_percentage": 0.5,
            },
        ]

    def test_port_usage_not_initialized(self, registry):
        response = client_for(registry).get("/plugins/AlibabaCloud-SLB/ports")

        assert response.status_code == 503
        assert response.json()["error"] == "SERVICE_UNAVAILABLE"

    def test_port_usage_unknown_plugin(self, registry):
        response = client_for(registry).get("/plugins/Unknown/ports")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "PLUGIN_NOT_FOUND"
        assert data["details"]["available_plugins"] == ["AlibabaCloud-SLB"]
        assert data["request_id"]

    def test_port_usage_without_allocator(self):
        """Test plugins that do not allocate ports report 404."""

        class InitializedStub(StubPlugin):
            @property
            def initialized(self):
                return True

        registry = PluginRegistry()
        registry.register(InitializedStub("Stub", "Stub-Alias"))

        response = client_for(registry).get("/plugins/Stub/ports")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"
