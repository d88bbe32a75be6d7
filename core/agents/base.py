"""Base agent class with retry and deadline logic."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from core.exceptions import StorageFailed, SynthesisFailed

TInput = TypeVar("TInput", bound=BaseModel)
TOutput = TypeVar("TOutput")


class BaseAgent(ABC, Generic[TInput, TOutput]):
    """Abstract base class for agents wrapping a slow external service.

    Provides common functionality including:
    - Structured logging
    - Retry logic with configurable attempts
    - A per-attempt deadline

    Subclasses implement `_execute` and name the error raised once every
    attempt has failed via `failure_error`.
    """

    failure_error: type[SynthesisFailed] | type[StorageFailed]

    def __init__(self, *, max_retries: int = 1, timeout: float | None = None):
        """Initialize the agent.

        Args:
            max_retries: Maximum number of retry attempts (0 = no retries).
            timeout: Seconds allowed per attempt (None = no deadline).
        """
        self.max_retries = max_retries
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def _execute(self, input_data: TInput) -> TOutput:
        """Core execution logic - must be implemented by subclasses.

        Args:
            input_data: The input data for this agent.

        Returns:
            The processed output.

        Raises:
            Any exception that should trigger a retry.
        """
        ...

    async def run(self, input_data: TInput) -> TOutput:
        """Execute the agent with retry logic.

        Args:
            input_data: The input data to process.

        Returns:
            The processed output.

        Raises:
            SynthesisFailed | StorageFailed: If all retry attempts fail.
        """
        last_error: Exception | None = None
        total_attempts = self.max_retries + 1

        for attempt in range(total_attempts):
            try:
                self.logger.debug("Executing attempt %d/%d", attempt + 1, total_attempts)
                return await asyncio.wait_for(self._execute(input_data), timeout=self.timeout)
            except TimeoutError as e:
                last_error = e
                self.logger.warning(
                    "Attempt %d/%d timed out after %.1fs",
                    attempt + 1,
                    total_attempts,
                    self.timeout,
                )
            except Exception as e:
                last_error = e
                self.logger.warning(
                    "Attempt %d/%d failed: %s",
                    attempt + 1,
                    total_attempts,
                    str(e),
                )

        reason = str(last_error) or type(last_error).__name__
        raise self.failure_error(
            f"All {total_attempts} attempts failed for {self.__class__.__name__}: {reason}",
            attempts=total_attempts,
        ) from last_error
