"""
Compensating-action stack for multi-step mutations.

    async with Saga("invite_member") as saga:
        member = await gateway.insert_member(...)
        saga.add_compensation("delete member", gateway.delete_member, member["id"])
        ...

If the block raises, every recorded compensation runs in reverse order and the
original exception is re-raised unchanged. Compensation failures are logged
and collected on ``exc.cleanup_errors`` (when the exception is a ClubError);
they never replace the original error.
"""
from typing import Any, Awaitable, Callable, List, Tuple

from loguru import logger

from .errors import ClubError, CleanupError

Compensation = Tuple[str, Callable[..., Awaitable[Any]], tuple]


class Saga:
    """Records undo actions for completed steps and unwinds them on failure"""

    def __init__(self, name: str):
        self.name = name
        self._compensations: List[Compensation] = []
        self.cleanup_errors: List[CleanupError] = []

    def add_compensation(self, description: str, fn: Callable[..., Awaitable[Any]], *args: Any) -> None:
        self._compensations.append((description, fn, args))
        logger.debug(f"[{self.name}] step done, undo registered: {description}")

    @property
    def steps(self) -> List[str]:
        return [description for description, _, _ in self._compensations]

    async def unwind(self) -> List[CleanupError]:
        """Run compensations last-in first-out; keep going past failures"""
        while self._compensations:
            description, fn, args = self._compensations.pop()
            try:
                await fn(*args)
                logger.info(f"[{self.name}] compensated: {description}")
            except Exception as e:
                error = CleanupError(description, e)
                self.cleanup_errors.append(error)
                logger.error(f"[{self.name}] {error.message}")
        return self.cleanup_errors

    async def __aenter__(self) -> "Saga":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self._compensations.clear()
            return False

        logger.warning(f"[{self.name}] failed ({exc}); rolling back {len(self._compensations)} step(s)")
        errors = await self.unwind()
        if isinstance(exc, ClubError):
            exc.cleanup_errors.extend(errors)
        # propagate the original exception
        return False
