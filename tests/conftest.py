import pytest

from engine import SegmentationAllocator


def _check_coverage(allocator: SegmentationAllocator):
    """Sorted, gapless, exhaustive over [0, total) and no two adjacent free segments."""
    blocks = allocator.segments()
    assert blocks[0].start == 0
    for left, right in zip(blocks, blocks[1:]):
        assert left.end + 1 == right.start
        assert left.allocated or right.allocated
    assert blocks[-1].end == allocator.total_memory - 1


def _check_partition(allocator, processes):
    """Free pages and owned pages split [0, total_pages) with no overlap."""
    table = allocator.page_table()
    owned = [page for p in processes for page in p.pages]
    assert len(owned) == len(set(owned))
    free = [i for i, pid in enumerate(table) if pid is None]
    assert sorted(owned + free) == list(range(allocator.total_pages))
    for p in processes:
        for page in p.pages:
            assert table[page] == p.pid


@pytest.fixture
def check_coverage():
    return _check_coverage


@pytest.fixture
def check_partition():
    return _check_partition
