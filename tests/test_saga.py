"""
Saga Tests - compensating actions
"""
import pytest

from app.club.errors import CleanupError, PersistenceError
from app.club.saga import Saga


@pytest.mark.asyncio
class TestSaga:
    """Compensation stack"""

    async def test_success_runs_no_compensation(self):
        undone = []

        async def undo(name):
            undone.append(name)

        async with Saga("ok") as saga:
            saga.add_compensation("a", undo, "a")
            saga.add_compensation("b", undo, "b")

        assert undone == []
        assert saga.steps == []

    async def test_failure_unwinds_in_reverse_order(self):
        undone = []

        async def undo(name):
            undone.append(name)

        with pytest.raises(PersistenceError):
            async with Saga("fails") as saga:
                saga.add_compensation("first", undo, "first")
                saga.add_compensation("second", undo, "second")
                saga.add_compensation("third", undo, "third")
                raise PersistenceError("step 4 failed")

        assert undone == ["third", "second", "first"]

    async def test_cleanup_failure_never_replaces_original_error(self):
        """The original error surfaces; cleanup errors are attached"""
        undone = []

        async def undo(name):
            undone.append(name)

        async def broken():
            raise RuntimeError("delete failed")

        with pytest.raises(PersistenceError) as exc_info:
            async with Saga("fails") as saga:
                saga.add_compensation("first", undo, "first")
                saga.add_compensation("broken", broken)
                raise PersistenceError("Failed to update user role")

        err = exc_info.value
        assert err.message == "Failed to update user role"
        # later compensations still ran
        assert undone == ["first"]
        assert len(err.cleanup_errors) == 1
        assert isinstance(err.cleanup_errors[0], CleanupError)
        assert err.cleanup_errors[0].step == "broken"
        assert "delete failed" in err.cleanup_errors[0].message

    async def test_non_club_errors_propagate(self):
        undone = []

        async def undo():
            undone.append(True)

        with pytest.raises(KeyError):
            async with Saga("fails") as saga:
                saga.add_compensation("undo", undo)
                raise KeyError("boom")

        assert undone == [True]
