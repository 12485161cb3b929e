"""Tests for the paging allocator: free-list allocation, faults and replacement."""

import pytest

from engine import PagingAllocator, Process, ReplacementPolicy

TOTAL_MEMORY = 1024
PAGE_SIZE = 64
TOTAL_PAGES = 16
THREE_PAGE_SIZE = 130


def make_process(pid, size):
    return Process(pid, f"P{pid}", size)


@pytest.fixture
def small():
    """Four pages, two processes holding two pages each."""
    allocator = PagingAllocator(256, 64)
    first = make_process(1, 128)
    second = make_process(2, 128)
    allocator.allocate(first)
    allocator.allocate(second)
    return allocator, first, second


class TestPagingCreation:

    def test_total_pages_is_memory_over_page_size(self) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        assert allocator.total_pages == TOTAL_PAGES
        assert allocator.free_pages == TOTAL_PAGES

    def test_page_table_starts_empty(self) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        assert allocator.page_table() == [None] * TOTAL_PAGES
        assert allocator.page_owners() == {}

    def test_invalid_page_size_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            PagingAllocator(TOTAL_MEMORY, 0)

    def test_memory_smaller_than_a_page_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            PagingAllocator(32, PAGE_SIZE)


class TestPageAllocation:

    def test_pages_needed_rounds_up(self) -> None:
        assert make_process(1, THREE_PAGE_SIZE).pages_needed(PAGE_SIZE) == 3
        assert make_process(1, 128).pages_needed(PAGE_SIZE) == 2

    def test_lowest_free_pages_are_granted_first(self) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        process = make_process(1, THREE_PAGE_SIZE)
        assert allocator.allocate(process)
        assert process.pages == [0, 1, 2]
        assert allocator.page_owners() == {0: 1, 1: 1, 2: 1}

    def test_explicit_page_count_overrides_size(self) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        process = make_process(1, THREE_PAGE_SIZE)
        assert allocator.allocate(process, 5)
        assert len(process.pages) == 5

    def test_deallocate_restores_free_pages(self, check_partition) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        process = make_process(1, THREE_PAGE_SIZE)
        allocator.allocate(process)
        allocator.deallocate(process)
        assert allocator.free_pages == TOTAL_PAGES
        assert process.pages == []
        assert allocator.fifo_order() == []
        check_partition(allocator, [process])

    def test_scenario_three_processes_then_fault(self, check_partition) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        processes = [make_process(pid, THREE_PAGE_SIZE) for pid in (1, 2, 3)]
        for p in processes:
            assert allocator.allocate(p)
        assert allocator.free_pages == 7

        fourth = make_process(4, 4 * PAGE_SIZE)
        assert allocator.allocate(fourth)
        assert allocator.free_pages == 3
        assert allocator.faults == 0

        # 5 pages needed, 3 free: FIFO takes the five oldest allocated pages
        fifth = make_process(5, 5 * PAGE_SIZE)
        assert allocator.allocate(fifth)
        assert allocator.faults == 1
        assert allocator.evictions == 5
        assert sorted(fifth.pages) == [0, 1, 2, 3, 4]
        assert allocator.free_pages == 3
        check_partition(allocator, processes + [fourth, fifth])

    def test_process_larger_than_memory_fails(self, check_partition) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        resident = make_process(1, THREE_PAGE_SIZE)
        allocator.allocate(resident)

        huge = make_process(2, TOTAL_MEMORY + 1)
        assert not allocator.allocate(huge)
        assert huge.pages == []
        assert resident.pages == [0, 1, 2]
        check_partition(allocator, [resident, huge])

    def test_fault_fails_without_enough_victims(self) -> None:
        allocator = PagingAllocator(256, 64)
        process = make_process(1, 64)
        allocator.allocate(process)
        assert not allocator.handle_fault(make_process(2, 192), 3)
        assert process.pages == [0]


class TestReplacement:

    def test_eviction_removes_page_from_previous_owner(self, small, check_partition) -> None:
        allocator, first, second = small
        third = make_process(3, 64)
        assert allocator.allocate(third)
        assert third.pages == [0]
        assert first.pages == [1]
        check_partition(allocator, [first, second, third])

    def test_owner_losing_every_page_becomes_inactive(self, small, check_partition) -> None:
        allocator, first, second = small
        third = make_process(3, 128)
        assert allocator.allocate(third)
        assert third.pages == [0, 1]
        assert first.pages == []
        assert not first.active
        assert second.active
        check_partition(allocator, [first, second, third])

    def test_partly_evicted_process_is_not_resident(self, small) -> None:
        allocator, first, second = small
        assert allocator.holds(first)
        allocator.allocate(make_process(3, 64))
        assert first.pages == [1]
        assert first.active
        assert not allocator.holds(first)
        assert allocator.holds(second)

    def test_fifo_readmits_victims_at_the_back(self, small) -> None:
        allocator, _, _ = small
        allocator.allocate(make_process(3, 64))
        assert allocator.fifo_order() == [1, 2, 3, 0]

    def test_lru_evicts_least_recently_accessed(self, small) -> None:
        allocator, first, second = small
        allocator.set_policy(ReplacementPolicy.LRU)
        allocator.access(0)
        allocator.access(1)

        third = make_process(3, 64)
        assert allocator.allocate(third)
        assert third.pages == [2]
        assert second.pages == [3]
        assert first.pages == [0, 1]

    def test_optimal_is_approximated_by_lru(self, small) -> None:
        allocator, _, _ = small
        allocator.set_policy(ReplacementPolicy.OPTIMAL)
        allocator.access(0)
        allocator.access(1)

        third = make_process(3, 64)
        allocator.allocate(third)
        assert third.pages == [2]

    def test_access_on_free_or_missing_page_is_ignored(self) -> None:
        allocator = PagingAllocator(256, 64)
        allocator.access(2)
        allocator.access(99)
        allocator.access(-1)
        assert allocator.page_table() == [None] * 4

    def test_unknown_policy_is_rejected(self) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        with pytest.raises(ValueError):
            allocator.set_policy("RANDOM")
        assert allocator.policy == ReplacementPolicy.FIFO


class TestPagingFragmentation:

    def test_zero_when_nothing_allocated(self) -> None:
        assert PagingAllocator(TOTAL_MEMORY, PAGE_SIZE).fragmentation() == 0.0

    def test_free_page_share(self) -> None:
        allocator = PagingAllocator(TOTAL_MEMORY, PAGE_SIZE)
        allocator.allocate(make_process(1, THREE_PAGE_SIZE))
        assert allocator.fragmentation() == pytest.approx(13 / 16 * 100)
        assert allocator.free_memory() == 13 * PAGE_SIZE
        assert allocator.capacity == TOTAL_MEMORY
