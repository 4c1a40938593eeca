import logging
import time
from collections.abc import Sequence
from typing import Any, TypeVar

from catalog.commands.base import Command
from catalog.errors import EXECUTION_FAILED, VALIDATION_FAILED, CommandError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CommandRunner:
    """Validates and executes commands, normalizing every failure into ``CommandError``.

    The runner never calls ``undo()`` on its own: a failed ``execute()`` is
    reported to the caller, who decides whether anything needs compensating.
    """

    def handle(self, command: Command[T]) -> T:
        started = time.perf_counter()
        description = command.describe()
        logger.info("Executing command: %s", description)

        if not command.is_valid():
            logger.warning("Rejected invalid command: %s", description)
            raise CommandError(
                command.name,
                VALIDATION_FAILED,
                f"Command is not valid: {description}",
            )

        try:
            result = command.execute()
        except CommandError as exc:
            logger.error(
                "Command failed after %.1fms: %s - %s (%s)",
                _elapsed_ms(started),
                description,
                exc.message,
                exc.code,
            )
            raise
        except Exception as exc:
            logger.exception(
                "Unexpected error in command after %.1fms: %s",
                _elapsed_ms(started),
                description,
            )
            raise CommandError(
                command.name,
                EXECUTION_FAILED,
                f"Unexpected error: {exc}",
            ) from exc

        logger.info(
            "Command succeeded in %.1fms: %s", _elapsed_ms(started), description
        )
        return result


def run_in_sequence(runner: CommandRunner, commands: Sequence[Command[Any]]) -> list[Any]:
    """Run commands in order, compensating the ones that already succeeded on failure.

    When a command fails, every previously successful command is undone in
    reverse order and the original error is re-raised. The failing command itself
    is not undone; an undo failure during compensation is logged and the
    remaining compensations still run.
    """
    results = []
    completed: list[Command[Any]] = []
    for command in commands:
        try:
            results.append(runner.handle(command))
        except CommandError:
            logger.warning(
                "Compensating %d completed command(s) after failure of %s",
                len(completed),
                command.name,
            )
            for done in reversed(completed):
                try:
                    done.undo()
                except CommandError as undo_exc:
                    logger.error(
                        "Compensation failed for %s: %s", done.describe(), undo_exc.message
                    )
            raise
        completed.append(command)
    return results


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
