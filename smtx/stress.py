"""Stress test: many threads reading and writing a shared value under a SharedMutex."""

from __future__ import annotations

import argparse
import random
import sys
import threading
import time
from dataclasses import dataclass
from typing import Optional, Sequence, TextIO

from smtx.shared_mutex import SharedMutex


@dataclass(frozen=True)
class StressResult:
    """Counters gathered by a stress run."""

    final_value: int
    write_count: int
    read_count: int


class StressTest:
    """Runs reader and writer threads against one SharedMutex for a fixed time."""

    def __init__(
        self,
        num_threads: int = 32,
        duration: float = 10.0,
        writer_ratio: float = 0.25,
        max_delay: float = 0.001,
        output: Optional[TextIO] = None,
    ) -> None:
        if num_threads < 1:
            raise ValueError("num_threads must be at least 1")
        if duration < 0:
            raise ValueError("duration must not be negative")
        if not 0.0 <= writer_ratio <= 1.0:
            raise ValueError("writer_ratio must be between 0 and 1")
        if max_delay <= 0:
            raise ValueError("max_delay must be positive")
        self.num_threads = num_threads
        self.duration = duration
        self.writer_ratio = writer_ratio
        self.max_delay = max_delay
        self.output = output if output is not None else sys.stdout
        self._mutex = SharedMutex()
        self._print_lock = threading.Lock()
        self._stop = threading.Event()
        self._value = 0
        self._writes = 0
        self._reads: list[int] = []

    def _emit(self, line: str) -> None:
        with self._print_lock:
            print(line, file=self.output)

    def _worker(self, tid: int) -> None:
        rng = random.Random(tid * 7919 + 17)
        is_writer = rng.randrange(100) < self.writer_ratio * 100
        reads = 0
        while not self._stop.is_set():
            if is_writer:
                with self._mutex.exclusive():
                    self._value += 1
                    self._writes += 1
                    self._emit(f"    [Writer {tid:3d}] Wrote value = {self._value}")
            else:
                with self._mutex.shared():
                    reads += 1
                    self._emit(f"[Reader {tid:3d}] Read value = {self._value}")
            time.sleep(rng.uniform(0.0, self.max_delay))
        self._reads[tid] = reads

    def run(self) -> StressResult:
        """Run the workers for the configured duration and return the totals."""
        self._stop.clear()
        self._value = 0
        self._writes = 0
        self._reads = [0] * self.num_threads
        self._emit(
            f"[TEST] Starting smtx stress test with {self.num_threads} threads "
            f"for {self.duration:g} seconds..."
        )
        threads = [
            threading.Thread(target=self._worker, args=(tid,), daemon=True)
            for tid in range(self.num_threads)
        ]
        for thread in threads:
            thread.start()
        time.sleep(self.duration)
        self._stop.set()
        for thread in threads:
            thread.join()

        result = StressResult(
            final_value=self._value,
            write_count=self._writes,
            read_count=sum(self._reads),
        )
        self._emit("")
        self._emit(f"[TEST] Final global value = {result.final_value}")
        self._emit(f"[TEST] Total write count  = {result.write_count}")
        self._emit(f"[TEST] Total read count  = {result.read_count}")
        return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point for the stress test."""
    parser = argparse.ArgumentParser(description="Stress test the shared mutex.")
    parser.add_argument("--threads", type=int, default=32, help="number of worker threads")
    parser.add_argument("--duration", type=float, default=10.0, help="run time in seconds")
    parser.add_argument(
        "--writer-ratio", type=float, default=0.25, help="fraction of threads that write"
    )
    parser.add_argument(
        "--max-delay", type=float, default=0.001, help="maximum pause between operations"
    )
    args = parser.parse_args(argv)
    try:
        test = StressTest(
            num_threads=args.threads,
            duration=args.duration,
            writer_ratio=args.writer_ratio,
            max_delay=args.max_delay,
        )
    except ValueError as exc:
        parser.error(str(exc))
    test.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())