"""
Shared building blocks for assessment services.

OperationTimer measures collaborator calls (processing time is reported in
seconds with two decimals). OperationService gives every service a logger
bound to the session it is working on.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator, Optional

from cv_assessment.common.logger import AssessmentLogger, get_logger

logger = logging.getLogger(__name__)


@dataclass
class OperationTimer:
    """Timer utility for tracking operation duration."""

    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None

    @property
    def duration_ms(self) -> int:
        """Duration in milliseconds; measured up to now while running."""
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return int((end - self.start_time) * 1000)

    @property
    def duration_seconds(self) -> float:
        """Duration in seconds, rounded to 2 decimal places."""
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return round(end - self.start_time, 2)

    def stop(self) -> int:
        """
        Stop the timer and return duration in milliseconds.

        Returns:
            Duration in milliseconds
        """
        self.end_time = time.perf_counter()
        return self.duration_ms


class OperationService:
    """Base class for services that act on assessment sessions."""

    operation_name: str = "operation"

    def get_logger(self, session_id: Optional[str] = None) -> AssessmentLogger:
        return get_logger(type(self).__module__, session_id=session_id, stage=self.operation_name)

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    @contextmanager
    def timed_execution(self) -> Generator[OperationTimer, None, None]:
        """
        Context manager for timing an operation.

        Usage:
            with self.timed_execution() as timer:
                await do_work()
            seconds = timer.duration_seconds
        """
        timer = OperationTimer()
        try:
            yield timer
        finally:
            timer.stop()
