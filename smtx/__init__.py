"""Shared mutex (reader-writer lock) with spin-then-yield waiting, and a stress test for it."""

__version__ = "1.0.0"
__all__ = ["shared_mutex", "stress"]