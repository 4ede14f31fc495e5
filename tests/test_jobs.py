"""Tests for scheduled jobs."""

from unittest.mock import AsyncMock, MagicMock, patch

from luckypaws.jobs.cleanup_stale_locks import (
    JOB_ID,
    main,
    run_stale_lock_cleanup,
    schedule_cleanup,
)
from luckypaws.models.card import CardStatus
from luckypaws.models.failure import ContentionError
from luckypaws.services.game_repository import GameRepository


class TestRunStaleLockCleanup:
    async def test_completes_stale_cards(self, published: GameRepository, clock) -> None:
        """Cards locked longer than the scheduled window are completed."""
        await published.claim_card(1, "A")
        clock.advance(61)

        completed = await run_stale_lock_cleanup(published)

        assert completed == [1]
        assert (await published.load_game()).get_card(1).status == CardStatus.COMPLETED

    async def test_uses_scheduled_window(self, published: GameRepository, clock) -> None:
        """50 seconds is stale for clients but not for the scheduled job."""
        await published.claim_card(1, "A")
        clock.advance(50)

        assert await run_stale_lock_cleanup(published) == []
        assert await run_stale_lock_cleanup(published, stale_after_seconds=30) == [1]

    async def test_zero_window(self, published: GameRepository, clock) -> None:
        """An explicit zero window completes every scratching card."""
        await published.claim_card(1, "A")
        clock.advance(1)

        assert await run_stale_lock_cleanup(published, stale_after_seconds=0) == [1]

    async def test_no_game(self, repository: GameRepository) -> None:
        """Missing game document is not an error for the job."""
        assert await run_stale_lock_cleanup(repository) == []

    async def test_known_error_is_logged(self, caplog) -> None:
        repository = MagicMock()
        repository.settings.scheduled_stale_lock_seconds = 60
        repository.sweep_stale_locks = AsyncMock(side_effect=ContentionError(5))

        assert await run_stale_lock_cleanup(repository) == []
        assert "Stale lock cleanup failed" in caplog.text


class TestScheduleCleanup:
    def test_registers_interval_job(self, repository: GameRepository) -> None:
        scheduler = MagicMock()

        schedule_cleanup(scheduler, repository)

        scheduler.add_job.assert_called_once()
        args, kwargs = scheduler.add_job.call_args
        assert args == (run_stale_lock_cleanup, "interval")
        assert kwargs["seconds"] == repository.settings.sweep_interval_seconds
        assert kwargs["args"] == [repository]
        assert kwargs["id"] == JOB_ID
        assert kwargs["max_instances"] == 1


class TestMain:
    def test_main_runs_one_pass(self) -> None:
        with (
            patch(
                "luckypaws.jobs.cleanup_stale_locks.run_stale_lock_cleanup",
                new_callable=AsyncMock,
                return_value=[],
            ) as mock_run,
            patch("luckypaws.jobs.cleanup_stale_locks.async_session_factory"),
        ):
            main()

        mock_run.assert_awaited_once()
