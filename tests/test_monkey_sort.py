import threading
import numpy as np
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from colorsort.monkey_sort import MonkeySorter, monkey_sort
from colorsort.ordering import sort_by_reds
from colorsort.pixels import PixelCollection


class _FixedPairs:
    """Generator stand-in that always draws the same index pair."""

    def __init__(self, first: int, second: int):
        self.pair = [first, second]

    def integers(self, low, high, size):
        return np.array([self.pair] * size[0])


class _BrokenGenerator:
    def integers(self, low, high, size):
        raise RuntimeError("generator failure")


def _seeded_pixels(count: int, seed: int = 3) -> PixelCollection:
    rng = np.random.default_rng(seed)
    pixels = PixelCollection.from_colors(rng.integers(0, 1 << 24, size=count))
    return sort_by_reds(pixels)


def test_zero_iterations_leave_ordering_untouched():
    pixels = _seeded_pixels(256)
    assigned_before = pixels.assigned_color.copy()
    cached_before = pixels.cached_distance.copy()

    result = MonkeySorter(pixels, workers=1, iterations=0, seed=1).run()

    assert result.attempts == 0
    assert result.swaps == 0
    assert np.array_equal(pixels.assigned_color, assigned_before)
    assert np.array_equal(pixels.cached_distance, cached_before)


def test_single_forced_swap_reaches_improved_total():
    # Pixel 0 holds blue=1 but is assigned color 0; pixel 1 the reverse
    pixels = PixelCollection.from_colors([0x000001, 0x000000])
    assert pixels.total_distance() == 2
    improved_total = (pixels.distance_from(0, int(pixels.assigned_color[1])) +
                      pixels.distance_from(1, int(pixels.assigned_color[0])))

    sorter = MonkeySorter(pixels, workers=1, iterations=1,
                          rng_factory=lambda worker_index: _FixedPairs(0, 1))
    result = sorter.run()

    assert result.swaps == 1
    assert pixels.assigned_color.tolist() == [1, 0]
    assert pixels.total_distance() == improved_total == 0
    assert pixels.is_cache_coherent()


def test_self_swap_is_a_noop():
    pixels = _seeded_pixels(64)
    assigned_before = pixels.assigned_color.copy()
    total_before = pixels.total_distance()
    sorter = MonkeySorter(pixels, workers=1, iterations=0)

    for index in range(len(pixels)):
        assert not sorter.check_swap(index, index)

    assert np.array_equal(pixels.assigned_color, assigned_before)
    assert pixels.total_distance() == total_before


def test_non_improving_swap_is_rejected():
    pixels = PixelCollection.from_colors([0x000000, 0x000001])
    sorter = MonkeySorter(pixels, workers=1, iterations=0)
    assert pixels.total_distance() == 0
    assert not sorter.check_swap(0, 1)
    assert pixels.assigned_color.tolist() == [0, 1]


def test_equal_cost_swap_is_rejected():
    # Swapping gives the same total, so nothing changes
    pixels = PixelCollection.from_colors([0x000001, 0x000001])
    sorter = MonkeySorter(pixels, workers=1, iterations=0)
    assert not sorter.check_swap(0, 1)
    assert pixels.assigned_color.tolist() == [0, 1]


def test_sixteen_workers_preserve_bijection():
    pixels = _seeded_pixels(4096)
    total_before = pixels.total_distance()

    result = MonkeySorter(pixels, workers=16, iterations=2000, seed=11, batch_size=256).run()

    assert result.attempts == 16 * 2000
    assert result.interrupted_workers == 0
    assert pixels.is_bijection()
    assert pixels.is_cache_coherent()
    assert pixels.total_distance() <= total_before
    assert result.swaps > 0


def test_single_worker_with_seed_is_reproducible():
    first = _seeded_pixels(512)
    second = _seeded_pixels(512)
    monkey_sort(first, workers=1, iterations=3000, seed=5)
    monkey_sort(second, workers=1, iterations=3000, seed=5)
    assert np.array_equal(first.assigned_color, second.assigned_color)


def test_interrupted_worker_is_reported_and_run_continues(capsys):
    pixels = _seeded_pixels(1024)

    def factory(worker_index):
        if worker_index == 0:
            return _BrokenGenerator()
        return np.random.default_rng(worker_index)

    result = MonkeySorter(pixels, workers=4, iterations=500, rng_factory=factory).run()

    assert result.interrupted_workers == 1
    assert result.worker_errors[0].worker_index == 0
    assert result.attempts == 3 * 500
    assert pixels.is_bijection()
    assert pixels.is_cache_coherent()
    assert "Worker 0 stopped" in capsys.readouterr().err


def test_result_dict_reports_counters():
    pixels = _seeded_pixels(128)
    result = MonkeySorter(pixels, workers=2, iterations=100, seed=2).run()
    summary = result.to_dict()
    assert summary["workers"] == 2
    assert summary["attempts"] == 200
    assert summary["swaps"] == result.swaps
    assert summary["interrupted_workers"] == 0


class _InterleavingLock:
    """Lock that lets another writer commit just before it is acquired."""

    def __init__(self, before_acquire):
        self.before_acquire = before_acquire
        self._lock = threading.Lock()

    def __enter__(self):
        self.before_acquire()
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._lock.release()
        return False


def test_locked_recheck_rejects_swap_made_stale_by_another_worker():
    # Swapping 0 and 1 looks like an improvement without the lock
    pixels = PixelCollection.from_colors([0x000001, 0x000000, 0x000002])
    assert pixels.total_distance() == 2
    sorter = MonkeySorter(pixels, workers=1, iterations=0)
    sorter._lock = _InterleavingLock(lambda: pixels.swap_assigned(0, 1))

    committed = sorter.check_swap(0, 1)

    # The other writer already made that swap; repeating it would undo the gain
    assert not committed
    assert pixels.assigned_color.tolist() == [1, 0, 2]
    assert pixels.total_distance() == 0
    assert pixels.is_bijection()
    assert pixels.is_cache_coherent()
