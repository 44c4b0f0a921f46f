# smtx

A shared mutex (reader-writer lock) for Python threads. Any number of readers
may hold the lock at once, or one writer may hold it alone. A waiting thread
spins with exponential backoff. Once the spin count passes a threshold, the
thread also yields.

A writer first claims the writer flag. This stops new readers from entering.
The writer then waits for the active readers to finish.

## Installing

```
pip install smtx
```

## Using the lock

```python
import time
from smtx.shared_mutex import SharedMutex

lock = SharedMutex()

with lock.shared():
    ...  # read the protected data

with lock.exclusive():
    ...  # modify the protected data
```

`shared()` and `exclusive()` are context managers. Each takes the lock,
yields the mutex itself, and releases the lock when the block ends.

The lock can also be taken and released by explicit calls:

- `lock_shared()` / `unlock_shared()` and `lock_exclusive()` / `unlock_exclusive()`
  wait until the lock is taken, and release it.
- `try_lock_shared()` and `try_lock_exclusive()` do not wait. They return
  `True` when the lock was taken and `False` when it is busy.
- `timed_lock_shared(deadline)` and `timed_lock_exclusive(deadline)` keep
  trying until `deadline`, a `time.monotonic()` value in seconds. They return
  `False` if the lock was not taken by then.

```python
if lock.timed_lock_exclusive(time.monotonic() + 0.5):
    try:
        ...
    finally:
        lock.unlock_exclusive()
```

If `unlock_shared()` is called while no reader is registered, it raises
`RuntimeError`. `unlock_exclusive()` does the same when no writer holds the
lock.

The lock's current state is available through the read-only properties
`reader_count` (the number of registered readers) and `writer_locked` (whether
a writer has claimed the lock). The `policy` property gives the lock's spin
policy.

### Tuning the wait

A `SpinPolicy` controls how waiting threads back off. It is a frozen
dataclass with these fields:

- `max_writer_wait_spins`, default 1024: the spin count limit for readers
  waiting on a writer.
- `max_reader_wait_spins`, default 1024: the spin count limit for a writer
  waiting on readers or on another writer.
- `yield_threshold`, default 512: past this spin count, a wait also yields
  the thread.

The spin count starts at 1. `next_spins(spins)` doubles it until it reaches
the limit. `wait(spins)` performs one busy wait of that many iterations.

Creating a policy with a maximum below 1, or with a negative threshold,
raises `ValueError`.

```python
from smtx.shared_mutex import SharedMutex, SpinPolicy

lock = SharedMutex(SpinPolicy(max_reader_wait_spins=256, yield_threshold=64))
```

## Stress test

The package includes a stress test. It starts reader and writer threads
against one lock, prints a line for every read and write, and reports the
final value and the write and read totals:

```
smtx-stress --threads 32 --duration 10 --writer-ratio 0.25 --max-delay 0.001
```

All options are optional. The values shown above are the defaults.

| Option | Meaning |
| --- | --- |
| `--threads` | number of worker threads |
| `--duration` | run time in seconds |
| `--writer-ratio` | approximate fraction of threads that write |
| `--max-delay` | maximum pause in seconds between a thread's operations |

From Python:

```python
import io
from smtx.stress import StressTest

result = StressTest(num_threads=8, duration=1.0, output=io.StringIO()).run()
print(result.final_value, result.write_count, result.read_count)
```

`run()` returns a `StressResult` with the fields `final_value`, `write_count`
and `read_count`. Its output goes to `output`, which defaults to standard
output.

`StressTest` raises `ValueError` in any of these cases:

- fewer than one thread;
- a negative duration;
- a writer ratio outside 0 to 1;
- a delay that is not positive.