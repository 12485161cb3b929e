# manager.py

"""
Memory coordinator: the single entry point the presentation layer uses.

It owns the process registry and both allocators, forwards allocation
requests to whichever strategy is active, and keeps process bookkeeping
consistent when the strategy is switched. Every public call runs under one
re-entrant lock, so a background worker and the UI can share an instance.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from engine import (
    Allocator,
    PagingAllocator,
    Process,
    ReplacementPolicy,
    Segment,
    SegmentationAllocator,
)
from utils import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_TOTAL_MEMORY,
    MAX_PRIORITY,
    MAX_PROCESS_SIZE,
    MIN_PRIORITY,
    MIN_PROCESS_SIZE,
    random_process_params,
)

logger = logging.getLogger(__name__)


class Strategy:
    PAGING = "PAGING"
    SEGMENTATION = "SEGMENTATION"

    ALL = (PAGING, SEGMENTATION)


@dataclass
class MemoryStats:
    """
    Aggregate figures computed from the active allocator.

    Attributes:
        total_memory (int): Managed capacity
        free_memory (int): Unallocated capacity
        fragmentation (float): Percentage, meaning depends on the strategy
        total_processes (int): Registered processes
        active_processes (int): Processes currently holding memory
    """
    total_memory: int
    free_memory: int
    fragmentation: float
    total_processes: int
    active_processes: int

    @property
    def used_memory(self) -> int:
        return self.total_memory - self.free_memory

    @property
    def utilization(self) -> float:
        if self.total_memory == 0:
            return 0.0
        return self.used_memory / self.total_memory * 100


class MemoryCoordinator:
    """
    Owns the process registry and both allocators.

    Attributes:
        total_memory (int): Capacity handed to both allocators
        page_size (int): Page size of the paging allocator
        min_process_size (int): Lower bound for demo processes
        max_process_size (int): Upper bound for demo processes
        strategy (str): Active Strategy value
        event_log (List[str]): Shared, human-readable log of memory events
    """

    def __init__(
        self,
        total_memory: int = DEFAULT_TOTAL_MEMORY,
        page_size: int = DEFAULT_PAGE_SIZE,
        min_process_size: int = MIN_PROCESS_SIZE,
        max_process_size: int = MAX_PROCESS_SIZE,
    ):
        if min_process_size <= 0 or min_process_size > max_process_size:
            raise ValueError("Process size bounds must satisfy 0 < min <= max")

        self.total_memory = total_memory
        self.page_size = page_size
        self.min_process_size = min_process_size
        self.max_process_size = max_process_size

        self._lock = threading.RLock()
        self.event_log: List[str] = []
        self.strategy = Strategy.PAGING
        self._build_allocators(ReplacementPolicy.FIFO)

        self._processes: Dict[int, Process] = {}
        self._next_pid = 1

    def _build_allocators(self, policy: str):
        self.paging = PagingAllocator(self.total_memory, self.page_size, self.event_log)
        self.paging.set_policy(policy)
        self.segmentation = SegmentationAllocator(self.total_memory, self.event_log)

    @property
    def allocator(self) -> Allocator:
        if self.strategy == Strategy.PAGING:
            return self.paging
        return self.segmentation

    # =========================================================================
    # PROCESS LIFECYCLE
    # =========================================================================

    def create_process(self, name: str, size: int, priority: int = MIN_PRIORITY) -> Process:
        """
        Register a new active process. No memory is allocated.

        Raises:
            ValueError: If size is not positive or priority is out of range
        """
        if size <= 0:
            raise ValueError("Process size must be positive")
        if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise ValueError(f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}")

        with self._lock:
            process = Process(self._next_pid, name, size, priority)
            self._next_pid += 1
            self._processes[process.pid] = process
            logger.debug("Created %s", process)
            return process

    def find_process(self, pid: int) -> Optional[Process]:
        with self._lock:
            return self._processes.get(pid)

    def all_processes(self) -> List[Process]:
        with self._lock:
            return list(self._processes.values())

    def active_processes(self) -> List[Process]:
        with self._lock:
            return [p for p in self._processes.values() if p.active]

    def terminate_process(self, pid: int) -> bool:
        """Deallocate and forget a process. Unknown ids are a no-op."""
        with self._lock:
            process = self._processes.get(pid)
            if process is None:
                return False
            self.deallocate(process)
            del self._processes[pid]
            self._record(f"Terminated P{pid}")
            return True

    # =========================================================================
    # ALLOCATION CONTROL
    # =========================================================================

    def allocate(self, process: Process) -> bool:
        with self._lock:
            if self._processes.get(process.pid) is not process:
                self._record(f"Unknown process P{process.pid}", logging.WARNING)
                return False
            if self.allocator.holds(process):
                return True
            # Partly evicted: give back what is left and start over
            self.allocator.deallocate(process)

            allocated = self.allocator.allocate(process)
            process.active = allocated
            if not allocated:
                self._record(f"Allocation failed for P{process.pid} ({process.size})", logging.WARNING)
            return allocated

    def deallocate(self, process: Process):
        with self._lock:
            self.allocator.deallocate(process)
            process.active = False

    def spawn_random(self, rng=None) -> Process:
        """Create and allocate a demo process with a random size and priority."""
        name, size, priority = random_process_params(rng, self.min_process_size, self.max_process_size)
        with self._lock:
            process = self.create_process(name, size, priority)
            self.allocate(process)
            return process

    def set_strategy(self, strategy: str):
        """
        Drain every active process, switch allocator, then reallocate every
        inactive process under the new strategy. Processes that do not fit
        stay inactive.
        """
        if strategy not in Strategy.ALL:
            raise ValueError(f"Unknown strategy: {strategy}")

        with self._lock:
            for process in self.active_processes():
                self.deallocate(process)

            self.strategy = strategy
            self._record(f"Switched to {strategy}")

            for process in self.all_processes():
                if not process.active:
                    process.active = True
                    self.allocate(process)

    def set_policy(self, policy: str):
        with self._lock:
            self.paging.set_policy(policy)

    def access_page(self, page: int):
        with self._lock:
            self.paging.access(page)

    def compact(self):
        with self._lock:
            self.segmentation.compact()

    def reset(self):
        """Drop all processes and rebuild both allocators at their original capacity."""
        with self._lock:
            self._processes.clear()
            self._next_pid = 1
            del self.event_log[:]
            self._build_allocators(self.paging.policy)
            self._record("Reset")

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def page_table(self) -> List[Optional[int]]:
        with self._lock:
            return self.paging.page_table()

    def page_owners(self) -> Dict[int, int]:
        with self._lock:
            return self.paging.page_owners()

    def free_pages(self) -> int:
        with self._lock:
            return self.paging.free_pages

    def fifo_order(self) -> List[int]:
        with self._lock:
            return self.paging.fifo_order()

    def segments(self) -> List[Segment]:
        with self._lock:
            return self.segmentation.segments()

    def recent_events(self, limit: int = 20) -> List[str]:
        with self._lock:
            return self.event_log[-limit:][::-1]

    def get_stats(self) -> MemoryStats:
        with self._lock:
            allocator = self.allocator
            return MemoryStats(
                total_memory=allocator.capacity,
                free_memory=allocator.free_memory(),
                fragmentation=allocator.fragmentation(),
                total_processes=len(self._processes),
                active_processes=sum(1 for p in self._processes.values() if p.active),
            )

    def _record(self, message: str, level: int = logging.DEBUG):
        self.event_log.append(message)
        logger.log(level, message)
