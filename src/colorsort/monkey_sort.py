"""
Parallel randomized pairwise-swap optimizer ("monkey sort").

Every worker repeatedly picks two random pixels and asks whether exchanging
their assigned colors would lower the pair's combined distance. The question
is first answered without any locking against possibly stale values; only the
pairs that look like an improvement are re-checked and committed while
holding the single lock that guards the whole pixel collection.
"""

from __future__ import annotations

import sys
import threading
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from .pixels import PixelCollection


class WorkerInterrupted(RuntimeError):
    """A worker stopped before finishing its iteration budget."""

    def __init__(self, worker_index: int, attempts: int, swaps: int):
        super().__init__(
            f"Worker {worker_index} stopped after {attempts:,} attempts ({swaps:,} swaps)"
        )
        self.worker_index = worker_index
        self.attempts = attempts
        self.swaps = swaps


@dataclass
class MonkeySortResult:
    """Counters gathered from one optimizer run."""
    workers: int
    iterations: int
    attempts: int
    swaps: int
    elapsed_seconds: float
    worker_errors: List[WorkerInterrupted] = field(default_factory=list)

    @property
    def interrupted_workers(self) -> int:
        return len(self.worker_errors)

    def to_dict(self) -> dict:
        return {
            'workers': self.workers,
            'iterations': self.iterations,
            'attempts': self.attempts,
            'swaps': self.swaps,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'interrupted_workers': self.interrupted_workers,
            'worker_errors': [str(error) for error in self.worker_errors],
        }


class MonkeySorter:
    """Runs a fixed budget of random swap attempts across a pool of threads."""

    def __init__(self, pixels: PixelCollection, workers: int = 16,
                 iterations: int = 2_000_000, seed: Optional[int] = None,
                 batch_size: int = 4096,
                 rng_factory: Optional[Callable[[int], object]] = None,
                 verbose: bool = False):
        """
        Initialize the optimizer.

        Args:
            pixels: Seeded pixel collection, shared by every worker
            workers: Number of concurrent worker threads
            iterations: Swap attempts per worker
            seed: Root seed; each worker gets its own spawned generator
            batch_size: Number of index pairs drawn per generator call
            rng_factory: Optional ``worker_index -> generator`` override; the
                generator must provide numpy's ``integers(low, high, size=...)``
            verbose: Print tracebacks of interrupted workers
        """
        if workers < 1:
            raise ValueError("Worker count must be at least 1")
        if iterations < 0:
            raise ValueError("Iteration count must be non-negative")
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")

        self.pixels = pixels
        self.workers = workers
        self.iterations = iterations
        self.seed = seed
        self.batch_size = batch_size
        self.rng_factory = rng_factory or self._spawn_generators(seed, workers)
        self.verbose = verbose
        self._lock = threading.Lock()

    @staticmethod
    def _spawn_generators(seed: Optional[int], workers: int) -> Callable[[int], np.random.Generator]:
        """Independent streams per worker so random draws need no synchronization."""
        children = np.random.SeedSequence(seed).spawn(workers)
        return lambda worker_index: np.random.default_rng(children[worker_index])

    def check_swap(self, first: int, second: int) -> bool:
        """
        Swap the assigned colors of two pixels if that strictly lowers their distance.

        The first comparison reads shared state without the lock and may see
        values another worker is in the middle of changing. It only filters out
        pairs; the comparison repeated under the lock decides.

        Returns:
            True if the swap was committed
        """
        pixels = self.pixels
        assigned = pixels.assigned_color
        cached = pixels.cached_distance

        old_distance = int(cached[first]) + int(cached[second])
        new_distance = (pixels.distance_from(first, int(assigned[second])) +
                        pixels.distance_from(second, int(assigned[first])))
        if new_distance >= old_distance:
            return False

        with self._lock:
            old_distance = int(cached[first]) + int(cached[second])
            new_distance = (pixels.distance_from(first, int(assigned[second])) +
                            pixels.distance_from(second, int(assigned[first])))
            if new_distance >= old_distance:
                return False
            pixels.swap_assigned(first, second)
        return True

    def _run_worker(self, worker_index: int) -> tuple:
        rng = self.rng_factory(worker_index)
        n = len(self.pixels)
        attempts = 0
        swaps = 0
        try:
            while attempts < self.iterations:
                batch = min(self.batch_size, self.iterations - attempts)
                pairs = rng.integers(0, n, size=(batch, 2))
                for first, second in pairs.tolist():
                    if self.check_swap(first, second):
                        swaps += 1
                    attempts += 1
        except Exception as exc:
            raise WorkerInterrupted(worker_index, attempts, swaps) from exc
        return attempts, swaps

    def run(self) -> MonkeySortResult:
        """
        Run every worker to completion and collect their counters.

        A worker that fails is reported and skipped; the swaps it already
        committed stay in place and the collection remains a valid assignment.
        """
        print(f"Monkey sort: {self.workers} workers x {self.iterations:,} attempts")
        started = time.perf_counter()
        attempts = 0
        swaps = 0
        errors: List[WorkerInterrupted] = []

        if len(self.pixels) > 0:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [executor.submit(self._run_worker, index)
                           for index in range(self.workers)]
                for future in futures:
                    error = future.exception()
                    if error is None:
                        worker_attempts, worker_swaps = future.result()
                        attempts += worker_attempts
                        swaps += worker_swaps
                        continue
                    if not isinstance(error, WorkerInterrupted):
                        raise error
                    attempts += error.attempts
                    swaps += error.swaps
                    errors.append(error)
                    print(f"[WARN] {error}: {error.__cause__!r}", file=sys.stderr)
                    if self.verbose:
                        traceback.print_exception(error.__cause__, file=sys.stderr)

        elapsed = time.perf_counter() - started
        print(f"Monkey sort finished: {swaps:,} swaps in {attempts:,} attempts ({elapsed:.1f}s)")
        return MonkeySortResult(
            workers=self.workers,
            iterations=self.iterations,
            attempts=attempts,
            swaps=swaps,
            elapsed_seconds=elapsed,
            worker_errors=errors,
        )


def monkey_sort(pixels: PixelCollection, workers: int = 16, iterations: int = 2_000_000,
                seed: Optional[int] = None, batch_size: int = 4096,
                verbose: bool = False) -> MonkeySortResult:
    """Convenience wrapper running a ``MonkeySorter`` once."""
    sorter = MonkeySorter(pixels, workers=workers, iterations=iterations,
                          seed=seed, batch_size=batch_size, verbose=verbose)
    return sorter.run()
