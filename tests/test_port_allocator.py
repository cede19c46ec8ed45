"""
Tests for load balancer port allocation.
"""

import asyncio
import random

import pytest

from game_network.exceptions import InternalError, PortAllocationError
from game_network.networking.port_allocator import PortAllocator, PortRange


async def bootstrapped(min_port=500, max_port=700, observed=()):
    allocator = PortAllocator(min_port, max_port)
    await allocator.bootstrap(observed)
    return allocator


@pytest.mark.unit
class TestPortRange:
    """Test PortRange class."""

    def test_valid_port_range(self):
        """Test creating valid port range."""
        port_range = PortRange(500, 700)
        assert port_range.start == 500
        assert port_range.end == 700
        assert port_range.size() == 200

    def test_invalid_port_range_order(self):
        """Test invalid port range with start >= end."""
        with pytest.raises(ValueError, match="Invalid port range"):
            PortRange(700, 500)

        with pytest.raises(ValueError, match="Invalid port range"):
            PortRange(500, 500)

    def test_invalid_port_range_values(self):
        """Test port range outside the TCP/UDP port space."""
        with pytest.raises(ValueError, match="outside valid range"):
            PortRange(0, 100)

        with pytest.raises(ValueError, match="outside valid range"):
            PortRange(60000, 70000)

    def test_contains_is_half_open(self):
        """Test the end of the range is excluded."""
        port_range = PortRange(500, 700)
        assert port_range.contains(500)
        assert port_range.contains(699)
        assert not port_range.contains(700)
        assert not port_range.contains(499)

    def test_to_list(self):
        """Test converting range to list."""
        assert PortRange(500, 503).to_list() == [500, 501, 502]


@pytest.mark.unit
class TestPortAllocator:
    """Test PortAllocator class."""

    def test_initialization(self):
        """Test allocator starts empty and not bootstrapped."""
        allocator = PortAllocator(500, 700)
        assert allocator.min_port == 500
        assert allocator.max_port == 700
        assert not allocator.bootstrapped

    def test_invalid_range_rejected(self):
        """Test allocator refuses an empty range."""
        with pytest.raises(ValueError):
            PortAllocator(700, 500)

    @pytest.mark.asyncio
    async def test_allocate_before_bootstrap(self):
        """Test allocation is refused until the table has been rebuilt."""
        allocator = PortAllocator(500, 700)
        with pytest.raises(InternalError, match="before bootstrap"):
            await allocator.allocate("lb-1", 1)

    @pytest.mark.asyncio
    async def test_allocate_ascending(self):
        """Test the lowest free ports are handed out first."""
        allocator = await bootstrapped()
        assert await allocator.allocate("lb-1", 3) == [500, 501, 502]
        assert await allocator.allocate("lb-1", 1) == [503]

    @pytest.mark.asyncio
    async def test_allocate_zero(self):
        """Test asking for nothing returns nothing."""
        allocator = await bootstrapped()
        assert await allocator.allocate("lb-1", 0) == []
        assert await allocator.allocated_ports("lb-1") == []

    @pytest.mark.asyncio
    async def test_allocate_skips_bootstrapped_ports(self):
        """Test ports held by existing services are never handed out."""
        allocator = await bootstrapped(observed=[("lb-1", [500, 502])])
        assert await allocator.allocate("lb-1", 2) == [501, 503]

    @pytest.mark.asyncio
    async def test_load_balancers_are_independent(self):
        """Test each load balancer has its own port table."""
        allocator = await bootstrapped(500, 502)
        assert await allocator.allocate("lb-1", 2) == [500, 501]
        assert await allocator.allocate("lb-2", 2) == [500, 501]

    @pytest.mark.asyncio
    async def test_exhaustion(self):
        """Test running out of ports raises and reports the shortfall."""
        allocator = await bootstrapped(500, 502)
        ports = await allocator.allocate("lb-1", 2)
        assert len(set(ports)) == 2
        assert all(500 <= port < 502 for port in ports)

        with pytest.raises(PortAllocationError) as exc_info:
            await allocator.allocate("lb-1", 1)

        assert exc_info.value.lb_id == "lb-1"
        assert exc_info.value.requested == 1
        assert exc_info.value.available == 0

    @pytest.mark.asyncio
    async def test_exhaustion_marks_nothing(self):
        """Test a failed allocation leaves the table untouched."""
        allocator = await bootstrapped(500, 503)
        await allocator.allocate("lb-1", 2)

        with pytest.raises(PortAllocationError):
            await allocator.allocate("lb-1", 2)

        assert await allocator.allocated_ports("lb-1") == [500, 501]
        assert await allocator.allocate("lb-1", 1) == [502]

    @pytest.mark.asyncio
    async def test_reserve_before_bootstrap(self):
        allocator = PortAllocator(500, 700)
        with pytest.raises(InternalError, match="before bootstrap"):
            await allocator.reserve("lb-1", [500])

    @pytest.mark.asyncio
    async def test_reserved_ports_skipped(self):
        """Test ports kept from an earlier allocation are never handed out again."""
        allocator = await bootstrapped()
        await allocator.reserve("lb-1", [500, 502])

        assert await allocator.allocated_ports("lb-1") == [500, 502]
        assert await allocator.allocate("lb-1", 2) == [501, 503]

    @pytest.mark.asyncio
    async def test_reserve_ignores_out_of_range(self):
        allocator = await bootstrapped()
        await allocator.reserve("lb-1", [80, 700, 650])

        assert await allocator.allocated_ports("lb-1") == [650]

    @pytest.mark.asyncio
    async def test_deallocate_then_allocate(self):
        """Test a released port is handed out again."""
        allocator = await bootstrapped(500, 502)
        await allocator.allocate("lb-1", 2)

        await allocator.deallocate("lb-1", 501)

        assert await allocator.allocate("lb-1", 1) == [501]

    @pytest.mark.asyncio
    async def test_deallocate_unknown(self):
        """Test releasing untracked ports is a no-op."""
        allocator = await bootstrapped()
        await allocator.allocate("lb-1", 1)

        await allocator.deallocate("lb-unknown", 500)
        await allocator.deallocate("lb-1", 9999)
        await allocator.deallocate("lb-1", 510)

        assert await allocator.allocated_ports("lb-1") == [500]
        assert "lb-unknown" not in await allocator.get_port_usage_stats()

    @pytest.mark.asyncio
    async def test_deallocate_twice(self):
        """Test releasing the same port twice is harmless."""
        allocator = await bootstrapped()
        await allocator.allocate("lb-1", 1)

        await allocator.deallocate("lb-1", 500)
        await allocator.deallocate("lb-1", 500)

        assert await allocator.allocated_ports("lb-1") == []

    @pytest.mark.asyncio
    async def test_concurrent_allocation(self):
        """Test concurrent allocations never hand out the same port twice."""
        allocator = await bootstrapped(500, 550)

        results = await asyncio.gather(*(allocator.allocate("lb-1", 1) for _ in range(50)))

        ports = [result[0] for result in results]
        assert len(set(ports)) == 50
        with pytest.raises(PortAllocationError):
            await allocator.allocate("lb-1", 1)

    @pytest.mark.asyncio
    async def test_random_operations_keep_ports_distinct(self):
        """Test a long random sequence of operations against a simple model."""
        rng = random.Random(1234)
        allocator = await bootstrapped(500, 520)
        held = set()

        for _ in range(500):
            if held and rng.random() < 0.4:
                port = rng.choice(sorted(held))
                await allocator.deallocate("lb-1", port)
                held.discard(port)
                continue

            count = rng.randint(1, 4)
            try:
                ports = await allocator.allocate("lb-1", count)
            except PortAllocationError:
                assert 20 - len(held) < count
                continue

            assert len(ports) == count
            assert not held.intersection(ports)
            assert all(500 <= port < 520 for port in ports)
            held.update(ports)

        assert await allocator.allocated_ports("lb-1") == sorted(held)


@pytest.mark.unit
class TestBootstrap:
    """Test rebuilding the allocation table from observed services."""

    @pytest.mark.asyncio
    async def test_bootstrap_reproduces_in_range_ports(self):
        """Test exactly the in-range observed ports are marked."""
        allocator = await bootstrapped(observed=[
            ("lb-1", [500, 501]),
            ("lb-1", [650, 700, 80]),
            ("lb-2", [699]),
        ])

        assert allocator.bootstrapped
        assert await allocator.allocated_ports("lb-1") == [500, 501, 650]
        assert await allocator.allocated_ports("lb-2") == [699]

    @pytest.mark.asyncio
    async def test_bootstrap_skips_empty_lb_id(self):
        """Test services without a load balancer id are ignored."""
        allocator = await bootstrapped(observed=[("", [500])])
        assert await allocator.get_port_usage_stats() == {}

    @pytest.mark.asyncio
    async def test_bootstrap_replaces_previous_table(self):
        """Test a second bootstrap discards earlier allocations."""
        allocator = await bootstrapped()
        await allocator.allocate("lb-1", 5)

        await allocator.bootstrap([("lb-2", [600])])

        assert await allocator.allocated_ports("lb-1") == []
        assert await allocator.allocated_ports("lb-2") == [600]


@pytest.mark.unit
class TestPortUsageStats:
    """Test usage statistics."""

    @pytest.mark.asyncio
    async def test_stats(self):
        """Test figures for every tracked load balancer."""
        allocator = await bootstrapped(500, 700, observed=[("lb-1", [500, 501, 502])])
        await allocator.allocate("lb-2", 1)

        stats = await allocator.get_port_usage_stats()

        assert stats["lb-1"] == {
            "total_ports": 200,
            "allocated_ports": 3,
            "available_ports": 197,
            "allocation_percentage": 1.5,
        }
        assert stats["lb-2"]["allocated_ports"] == 1

    @pytest.mark.asyncio
    async def test_stats_single_load_balancer(self):
        """Test filtering statistics to one load balancer."""
        allocator = await bootstrapped(observed=[("lb-1", [500]), ("lb-2", [500])])

        assert list(await allocator.get_port_usage_stats("lb-1")) == ["lb-1"]
        assert await allocator.get_port_usage_stats("lb-missing") == {}
