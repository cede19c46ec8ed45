"""
Listener port allocation for load balancers shared by many game servers.

Every load balancer owns the same port range; the allocator records, per
load balancer id, which ports of that range are held by an exposure Service.
The table is rebuilt from the Services found in the cluster on start-up, so
nothing but the cluster itself has to persist allocation state.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass
from ..exceptions import InternalError, PortAllocationError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PortRange:
    """Half-open range of ports, ``start <= port < end``."""
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Invalid port range: {self.start} >= {self.end}")
        if self.start < 1 or self.end > 65536:
            raise ValueError(f"Port range [{self.start}, {self.end}) is outside valid range (1-65535)")

    def contains(self, port: int) -> bool:
        """Check if port is within this range."""
        return self.start <= port < self.end

    def size(self) -> int:
        """Get the number of ports in this range."""
        return self.end - self.start

    def to_list(self) -> List[int]:
        """Convert range to list of ports."""
        return list(range(self.start, self.end))


class PortAllocator:
    """Tracks which listener ports are in use on every load balancer."""

    def __init__(self, min_port: int, max_port: int):
        """Initialize port allocator.

        Args:
            min_port: First allocatable port (inclusive)
            max_port: End of the allocatable range (exclusive)
        """
        self.port_range = PortRange(min_port, max_port)

        # lb id -> port -> allocated
        self._cache: Dict[str, Dict[int, bool]] = {}
        self._bootstrapped = False

        self._lock = asyncio.Lock()

        logger.info(f"Port allocator initialized with range [{min_port}, {max_port})")

    @property
    def min_port(self) -> int:
        return self.port_range.start

    @property
    def max_port(self) -> int:
        return self.port_range.end

    @property
    def bootstrapped(self) -> bool:
        return self._bootstrapped

    async def bootstrap(self, observed: Iterable[Tuple[str, Iterable[int]]]) -> None:
        """Rebuild the allocation table from ports already held in the cluster.

        Args:
            observed: (lb id, ports) pairs, one per existing exposure Service.
                Ports outside the range are reserved by the provider and are
                not tracked.
        """
        async with self._lock:
            cache: Dict[str, Dict[int, bool]] = {}
            ignored = 0
            for lb_id, ports in observed:
                if not lb_id:
                    continue
                table = cache.get(lb_id)
                if table is None:
                    table = self._new_table()
                    cache[lb_id] = table
                for port in ports:
                    if self.port_range.contains(port):
                        table[port] = True
                    else:
                        ignored += 1

            self._cache = cache
            self._bootstrapped = True

            logger.info(
                f"Port allocator bootstrapped with {len(cache)} load balancers",
                extra={
                    "load_balancers": len(cache),
                    "allocated_ports": sum(self._count_allocated(t) for t in cache.values()),
                    "ignored_ports": ignored
                }
            )

    async def allocate(self, lb_id: str, count: int) -> List[int]:
        """Allocate ``count`` distinct free ports on a load balancer.

        Args:
            lb_id: Load balancer identifier
            count: Number of ports requested

        Returns:
            Allocated ports in ascending order

        Raises:
            InternalError: If called before bootstrap
            PortAllocationError: If fewer than ``count`` ports are free
        """
        if count <= 0:
            return []

        async with self._lock:
            if not self._bootstrapped:
                raise InternalError(
                    "Port allocator used before bootstrap",
                    details={"lb_id": lb_id}
                )

            table = self._cache.get(lb_id)
            if table is None:
                table = self._new_table()
                self._cache[lb_id] = table

            ports = []
            for port in self.port_range.to_list():
                if not table[port]:
                    ports.append(port)
                    if len(ports) == count:
                        break

            if len(ports) < count:
                logger.warning(
                    f"Load balancer {lb_id} exhausted: {len(ports)} free ports, {count} requested",
                    extra={"lb_id": lb_id, "requested": count, "available": len(ports)}
                )
                raise PortAllocationError(lb_id, requested=count, available=len(ports))

            for port in ports:
                table[port] = True

            logger.debug(f"Allocated ports {ports} on load balancer {lb_id}")
            return ports

    async def reserve(self, lb_id: str, ports: Iterable[int]) -> None:
        """Mark ports already held by an earlier allocation as taken.

        Raises:
            InternalError: If called before bootstrap
        """
        async with self._lock:
            if not self._bootstrapped:
                raise InternalError(
                    "Port allocator used before bootstrap",
                    details={"lb_id": lb_id}
                )

            table = self._cache.get(lb_id)
            if table is None:
                table = self._new_table()
                self._cache[lb_id] = table

            reserved = [port for port in ports if self.port_range.contains(port)]
            for port in reserved:
                table[port] = True

            logger.debug(f"Reserved ports {reserved} on load balancer {lb_id}")

    async def deallocate(self, lb_id: str, port: int) -> None:
        """Mark a port free again.

        Unknown load balancers and ports are ignored: deletion events may
        arrive late or twice.
        """
        async with self._lock:
            table = self._cache.get(lb_id)
            if table is None or port not in table:
                logger.debug(f"Ignoring release of untracked port {port} on load balancer {lb_id}")
                return

            table[port] = False
            logger.debug(f"Released port {port} on load balancer {lb_id}")

    async def allocated_ports(self, lb_id: str) -> List[int]:
        """Snapshot of the ports currently held on a load balancer."""
        async with self._lock:
            table = self._cache.get(lb_id, {})
            return sorted(port for port, allocated in table.items() if allocated)

    async def get_port_usage_stats(self, lb_id: Optional[str] = None) -> Dict[str, Dict[str, float]]:
        """Get port usage statistics.

        Args:
            lb_id: Restrict the result to one load balancer

        Returns:
            Mapping of lb id to usage figures
        """
        async with self._lock:
            if lb_id is not None:
                tables = {lb_id: self._cache[lb_id]} if lb_id in self._cache else {}
            else:
                tables = self._cache

            total_ports = self.port_range.size()
            stats = {}
            for key, table in sorted(tables.items()):
                allocated_count = self._count_allocated(table)
                stats[key] = {
                    "total_ports": total_ports,
                    "allocated_ports": allocated_count,
                    "available_ports": total_ports - allocated_count,
                    "allocation_percentage": round(allocated_count / total_ports * 100, 2)
                }
            return stats

    # Private helper methods

    def _new_table(self) -> Dict[int, bool]:
        return {port: False for port in self.port_range.to_list()}

    @staticmethod
    def _count_allocated(table: Dict[int, bool]) -> int:
        return sum(1 for allocated in table.values() if allocated)
