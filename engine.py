# engine.py

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class Process:
    """
    A logical process competing for memory.

    Attributes:
        pid (int): Unique id assigned by the coordinator
        name (str): Display name
        size (int): Requested memory in units (KB)
        priority (int): 1 (lowest) to 10 (highest)
        active (bool): True while the process holds memory
        pages (List[int]): Page indices owned in paging mode
        segments (List[int]): Segment handles owned in segmentation mode
    """
    pid: int
    name: str
    size: int
    priority: int = 1
    active: bool = True
    pages: List[int] = field(default_factory=list)
    segments: List[int] = field(default_factory=list)

    def pages_needed(self, page_size: int) -> int:
        return math.ceil(self.size / page_size)

    def __str__(self):
        return f"Process[ID={self.pid}, Name={self.name}, Size={self.size}, Active={self.active}]"


class SegmentKind:
    CODE = "CODE"
    DATA = "DATA"
    STACK = "STACK"
    FREE = "FREE"


@dataclass
class Segment:
    seg_id: int
    start: int
    size: int
    allocated: bool = False
    owner: Optional[int] = None
    kind: str = SegmentKind.FREE

    @property
    def end(self) -> int:
        return self.start + self.size - 1

    def __repr__(self):
        state = "A" if self.allocated else "F"
        return f"[{state}|{self.start}|{self.size}]"


class ReplacementPolicy:
    """
    Available page replacement algorithms.

    FIFO:    evict the pages admitted earliest
    LRU:     evict the pages with the oldest access stamp
    OPTIMAL: approximated by LRU; no future reference string is known
             to the allocator, so true Belady replacement is impossible
    """
    FIFO = "FIFO"
    LRU = "LRU"
    OPTIMAL = "OPTIMAL"

    ALL = (FIFO, LRU, OPTIMAL)


# =============================================================================
# ALLOCATOR INTERFACE
# =============================================================================

class Allocator:
    """Capability shared by the paging and segmentation variants."""

    def __init__(self, event_log: Optional[List[str]] = None):
        self.event_log: List[str] = event_log if event_log is not None else []

    def allocate(self, process: Process) -> bool:
        raise NotImplementedError

    def deallocate(self, process: Process) -> None:
        raise NotImplementedError

    def holds(self, process: Process) -> bool:
        raise NotImplementedError

    @property
    def capacity(self) -> int:
        raise NotImplementedError

    def free_memory(self) -> int:
        raise NotImplementedError

    def fragmentation(self) -> float:
        raise NotImplementedError

    def _log(self, message: str, level: int = logging.DEBUG):
        self.event_log.append(message)
        logger.log(level, message)


# =============================================================================
# PAGING
# =============================================================================

class PagingAllocator(Allocator):
    """
    Fixed-size page allocator with fault handling and page replacement.

    Pages are handed out from a free list seeded in ascending order, so a
    fresh allocator grants the lowest free indices first. When the free list
    cannot satisfy a request, victims are chosen among allocated pages by the
    current replacement policy and reassigned to the requester.

    Attributes:
        total_memory (int): Capacity the allocator was built with
        page_size (int): Size of each page
        total_pages (int): total_memory // page_size
        policy (str): One of ReplacementPolicy.ALL
        faults (int): Number of requests that went through fault handling
        evictions (int): Number of pages taken from a previous owner
    """

    def __init__(self, total_memory: int, page_size: int, event_log: Optional[List[str]] = None):
        super().__init__(event_log)
        if page_size <= 0:
            raise ValueError("Page size must be positive")
        if total_memory < page_size:
            raise ValueError("Total memory must hold at least one page")

        self.total_memory = total_memory
        self.page_size = page_size
        self.total_pages = total_memory // page_size
        self.policy = ReplacementPolicy.FIFO

        # Page index -> owning pid, None when free
        self._owners: List[Optional[int]] = [None] * self.total_pages
        self._free: List[int] = list(range(self.total_pages))

        # Replacement bookkeeping: admission order and LRU logical clock
        self._fifo: "OrderedDict[int, None]" = OrderedDict()
        self._last_used: Dict[int, int] = {}
        self._clock = 0

        # Back-references so eviction can update the victim's page list
        self._processes: Dict[int, Process] = {}

        self.faults = 0
        self.evictions = 0

    # -----------------------------
    # Configuration
    # -----------------------------
    def set_policy(self, policy: str):
        if policy not in ReplacementPolicy.ALL:
            raise ValueError(f"Unknown replacement policy: {policy}")
        self.policy = policy

    # -----------------------------
    # Allocation
    # -----------------------------
    def allocate(self, process: Process, pages_needed: Optional[int] = None) -> bool:
        if pages_needed is None:
            pages_needed = process.pages_needed(self.page_size)

        if len(self._free) >= pages_needed:
            granted = []
            for _ in range(pages_needed):
                page = self._free.pop(0)
                self._admit(page, process)
                granted.append(page)
            self._log(f"Allocated pages {granted} to P{process.pid}")
            return True

        return self.handle_fault(process, pages_needed)

    def handle_fault(self, process: Process, pages_needed: int) -> bool:
        """
        Satisfy a request by reassigning victim pages to `process`.

        Victims are picked among allocated pages only; pages still on the
        free list are left alone. Evicted pages are removed from their
        previous owner's page list; an owner left with no pages becomes
        inactive.

        Returns:
            bool: False if the process can never fit or too few victims exist
        """
        self.faults += 1
        self._log(f"Fault: P{process.pid} needs {pages_needed} pages, {len(self._free)} free")

        if pages_needed > self.total_pages:
            self._log(
                f"P{process.pid} too large: {pages_needed} pages > {self.total_pages} total",
                logging.WARNING,
            )
            return False

        victims = self._select_victims(pages_needed)
        if len(victims) < pages_needed:
            self._log(
                f"Only {len(victims)} victim pages available for P{process.pid}",
                logging.WARNING,
            )
            return False

        for page in victims:
            previous = self._processes.get(self._owners[page])
            if previous is not None:
                previous.pages.remove(page)
                self._log(f"Evicting: page {page} from P{previous.pid}")
                if not previous.pages and previous is not process:
                    previous.active = False
                    self._log(f"P{previous.pid} lost its last page")
            self.evictions += 1
            self._admit(page, process)

        self._log(f"Reassigned pages {victims} to P{process.pid}")
        return True

    def deallocate(self, process: Process) -> None:
        for page in process.pages:
            self._owners[page] = None
            self._fifo.pop(page, None)
            self._last_used.pop(page, None)
            self._free.append(page)
        if process.pages:
            self._log(f"Freed pages {process.pages} from P{process.pid}")
        process.pages.clear()
        self._processes.pop(process.pid, None)

    def access(self, page: int):
        """Refresh the LRU stamp of an allocated page. Free pages are ignored."""
        if 0 <= page < self.total_pages and self._owners[page] is not None:
            self._last_used[page] = self._tick()

    def holds(self, process: Process) -> bool:
        return len(process.pages) >= process.pages_needed(self.page_size)

    # -----------------------------
    # Helpers
    # -----------------------------
    def _tick(self) -> int:
        stamp = self._clock
        self._clock += 1
        return stamp

    def _admit(self, page: int, process: Process):
        self._owners[page] = process.pid
        self._processes[process.pid] = process
        process.pages.append(page)
        # Re-admission moves the page to the back of the FIFO order
        self._fifo.pop(page, None)
        self._fifo[page] = None
        self._last_used[page] = self._tick()

    def _select_victims(self, count: int) -> List[int]:
        if self.policy == ReplacementPolicy.FIFO:
            return list(self._fifo)[:count]
        # LRU, and OPTIMAL as its approximation
        ordered = sorted(self._last_used.items(), key=lambda item: item[1])
        return [page for page, _ in ordered[:count]]

    # -----------------------------
    # Read-only views
    # -----------------------------
    def page_table(self) -> List[Optional[int]]:
        return list(self._owners)

    def page_owners(self) -> Dict[int, int]:
        return {page: pid for page, pid in enumerate(self._owners) if pid is not None}

    def fifo_order(self) -> List[int]:
        return list(self._fifo)

    @property
    def free_pages(self) -> int:
        return len(self._free)

    @property
    def capacity(self) -> int:
        return self.total_pages * self.page_size

    def free_memory(self) -> int:
        return self.free_pages * self.page_size

    def fragmentation(self) -> float:
        used = self.total_pages - self.free_pages
        if used == 0:
            return 0.0
        return self.free_pages / self.total_pages * 100


# =============================================================================
# SEGMENTATION
# =============================================================================

class SegmentationAllocator(Allocator):
    """
    Variable-size allocator over [0, total_memory) using best fit.

    The segment list is kept sorted by start address, gapless, and without
    adjacent free segments. Segments carry stable integer handles so that
    process references survive compaction.
    """

    def __init__(self, total_memory: int, event_log: Optional[List[str]] = None):
        super().__init__(event_log)
        if total_memory <= 0:
            raise ValueError("Total memory must be positive")

        self.total_memory = total_memory
        self.next_id = 1
        self.blocks: List[Segment] = [self._new_segment(0, total_memory)]
        self._by_process: Dict[int, List[int]] = {}
        self.compactions = 0

    # -----------------------------
    # Allocation
    # -----------------------------
    def allocate(self, process: Process) -> bool:
        """Request CODE, DATA and STACK segments for `process`, all or nothing."""
        code_size = process.size // 3
        data_size = process.size // 3
        stack_size = process.size - code_size - data_size

        for size, kind in ((code_size, SegmentKind.CODE),
                           (data_size, SegmentKind.DATA),
                           (stack_size, SegmentKind.STACK)):
            # Processes smaller than 3 units have empty CODE/DATA parts
            if size == 0:
                continue
            if not self.allocate_segment(process, size, kind):
                self._log(f"Rolling back segments of P{process.pid}", logging.WARNING)
                self.deallocate_segments(process)
                return False
        return True

    def allocate_segment(self, process: Process, size: int, kind: str) -> bool:
        if kind not in (SegmentKind.CODE, SegmentKind.DATA, SegmentKind.STACK):
            raise ValueError(f"Unknown segment kind: {kind}")
        if size <= 0:
            self._log(f"Rejected {kind} segment of size {size} for P{process.pid}", logging.WARNING)
            return False

        index = self._best_fit(size)
        if index is None:
            self.compact()
            index = self._best_fit(size)
        if index is None:
            self._log(f"No free segment of {size} for P{process.pid} {kind}", logging.WARNING)
            return False

        hole = self.blocks[index]
        segment = self._new_segment(hole.start, size)
        segment.allocated = True
        segment.owner = process.pid
        segment.kind = kind

        if hole.size > size:
            hole.start += size
            hole.size -= size
            self.blocks.insert(index, segment)
        else:
            self.blocks[index] = segment

        self._by_process.setdefault(process.pid, []).append(segment.seg_id)
        process.segments.append(segment.seg_id)
        self._sort()
        self._log(f"{kind} segment #{segment.seg_id} at {segment.start} ({size}) -> P{process.pid}")
        return True

    def deallocate_segments(self, process: Process) -> None:
        handles = set(self._by_process.pop(process.pid, []))
        for block in self.blocks:
            if block.seg_id in handles:
                block.allocated = False
                block.owner = None
                block.kind = SegmentKind.FREE
        if handles:
            self._log(f"Freed {len(handles)} segments from P{process.pid}")
        process.segments.clear()
        self.merge_adjacent()

    deallocate = deallocate_segments

    def holds(self, process: Process) -> bool:
        return bool(self._by_process.get(process.pid))

    # -----------------------------
    # Maintenance
    # -----------------------------
    def merge_adjacent(self):
        self._sort()
        merged: List[Segment] = []
        for block in self.blocks:
            if merged and not merged[-1].allocated and not block.allocated:
                merged[-1].size += block.size
            else:
                merged.append(block)
        self.blocks = merged

    def compact(self):
        """
        Slide allocated segments down to address 0 in their current order and
        gather all free space into one trailing free segment.
        """
        allocated = [b for b in self.blocks if b.allocated]
        total_free = sum(b.size for b in self.blocks if not b.allocated)

        address = 0
        for block in allocated:
            block.start = address
            address += block.size

        self.blocks = allocated
        if total_free > 0:
            self.blocks.append(self._new_segment(address, total_free))

        self.compactions += 1
        self._log(f"Compacted memory: {total_free} free at {address}")

    # -----------------------------
    # Helpers
    # -----------------------------
    def _new_segment(self, start: int, size: int) -> Segment:
        segment = Segment(self.next_id, start, size)
        self.next_id += 1
        return segment

    def _best_fit(self, size: int) -> Optional[int]:
        best_index = None
        best_size = float('inf')

        # Strict < keeps the lowest-address hole among equal sizes
        for i, block in enumerate(self.blocks):
            if not block.allocated and block.size >= size and block.size < best_size:
                best_size = block.size
                best_index = i

        return best_index

    def _sort(self):
        self.blocks.sort(key=lambda b: b.start)

    # -----------------------------
    # Read-only views
    # -----------------------------
    def segments(self) -> List[Segment]:
        return [replace(b) for b in self.blocks]

    def segments_for(self, pid: int) -> List[Segment]:
        handles = self._by_process.get(pid, [])
        return [replace(b) for b in self.blocks if b.seg_id in handles]

    @property
    def capacity(self) -> int:
        return self.total_memory

    def free_memory(self) -> int:
        return sum(b.size for b in self.blocks if not b.allocated)

    def largest_free_block(self) -> int:
        return max((b.size for b in self.blocks if not b.allocated), default=0)

    def fragmentation(self) -> float:
        total_free = self.free_memory()
        if total_free == 0:
            return 0.0
        return (total_free - self.largest_free_block()) / total_free * 100
