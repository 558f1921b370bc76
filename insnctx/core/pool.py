"""
Per-thread instruction record pool for trace replay.
"""

from typing import Dict, List, Optional

import structlog

from ..config import Settings
from .instruction import Instruction

logger = structlog.get_logger()


class InstructionPool:
    """
    Hands out one reusable Instruction per analysed thread.

    Records are never shared between thread ids. The pool does no locking;
    each thread id must be driven by a single writer.
    """

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = capacity  # Soft limit, only reported in logs
        self._records: Dict[int, Instruction] = {}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "InstructionPool":
        """Build a pool using the configured capacity (read from the environment by default)."""
        if settings is None:
            settings = Settings.from_env()
        return cls(capacity=settings.pool_capacity)

    def acquire(self, thread_id: int) -> Instruction:
        """Return the thread's record, fully reset and tagged with `thread_id`."""
        inst = self._records.get(thread_id)
        if inst is None:
            inst = Instruction()
            self._records[thread_id] = inst
            if self.capacity is not None and len(self._records) > self.capacity:
                logger.warning("Instruction pool above capacity", threads=len(self._records), capacity=self.capacity)
            else:
                logger.debug("New instruction record", thread_id=thread_id)
        else:
            inst.reset()
        inst.set_thread_id(thread_id)
        return inst

    def relift(self, thread_id: int) -> Instruction:
        """
        Partially reset the thread's record for a re-lift of the same
        instruction, keeping its register snapshot and memory log.

        Raises:
            KeyError: if no record was acquired for this thread
        """
        inst = self._records[thread_id]
        inst.partial_reset()
        inst.set_thread_id(thread_id)
        return inst

    def get(self, thread_id: int) -> Optional[Instruction]:
        return self._records.get(thread_id)

    def release(self, thread_id: int) -> None:
        inst = self._records.pop(thread_id, None)
        if inst is not None:
            inst.reset()

    def thread_ids(self) -> List[int]:
        return sorted(self._records)

    def clear(self) -> None:
        """Reset and drop every record, e.g. before releasing the expression arena."""
        for inst in self._records.values():
            inst.reset()
        logger.debug("Instruction pool cleared", threads=len(self._records))
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, thread_id: int) -> bool:
        return thread_id in self._records
