"""Utility functions for Sprint Analytics.

This module provides date handling, retry and serialisation helpers shared
by the data provider, the calculators and the report assembly.
"""

import asyncio
import dataclasses
import datetime
import enum
import logging
import random
import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type, TypeVar

import numpy as np
from dateutil import parser as date_parser
from dateutil import tz

T = TypeVar("T")
logger = logging.getLogger(__name__)


def retry_with_backoff(
    max_attempts: int = 5,
    base_delay: float = 1.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    should_retry: Optional[Callable[[Exception], bool]] = None,
):
    """Decorator for blocking API calls with retry and exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (default: 5)
        base_delay: Base delay in seconds for exponential backoff (default: 1.0)
        exceptions: Tuple of exception types to catch and retry (default: Exception)
        should_retry: Optional function deciding whether an exception should
                      be retried. Takes the exception, returns bool.

    The last exception is re-raised once the attempts are exhausted.

    Example:
        @retry_with_backoff(max_attempts=3, base_delay=2.0, exceptions=(JIRAError,))
        def fetch_sprint(self, sprint_id):
            return self.jira.sprint(sprint_id)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as exception:
                    if should_retry and not should_retry(exception):
                        raise

                    if attempt >= max_attempts:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            func.__name__,
                            max_attempts,
                            exception,
                        )
                        raise

                    delay = base_delay * (2 ** (attempt - 1)) + random.uniform(0, 1)
                    logger.warning(
                        "%s failed (attempt %d/%d): %s. Retrying in %.2f seconds...",
                        func.__name__,
                        attempt,
                        max_attempts,
                        exception,
                        delay,
                    )
                    time.sleep(delay)

            raise RuntimeError("Retry loop completed without returning or raising")

        return wrapper

    return decorator


def extend_dict(d, e):
    """Extend dictionary d with entries from e, returning a new dictionary."""
    r = d.copy()
    r.update(e)
    return r


def to_utc(value):
    """Return an aware UTC datetime. Naive values are assumed to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=tz.UTC)
    return value.astimezone(tz.UTC)


def parse_datetime(value):
    """Parse an ISO-like timestamp (or pass a datetime through) as aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return to_utc(value)
    if isinstance(value, datetime.date):
        return to_utc(datetime.datetime(value.year, value.month, value.day))
    return to_utc(date_parser.isoparse(str(value)))


def utcnow():
    return datetime.datetime.now(tz.UTC)


def hours_between(start, end) -> float:
    return (to_utc(end) - to_utc(start)).total_seconds() / 3600.0


def days_between(start, end) -> float:
    return (to_utc(end) - to_utc(start)).total_seconds() / 86400.0


def within(value, start, end) -> bool:
    """True if value falls inside the inclusive window. Open ends match anything."""
    if value is None:
        return False
    value = to_utc(value)
    if start is not None and value < to_utc(start):
        return False
    if end is not None and value > to_utc(end):
        return False
    return True


def percentage(part, whole, digits=2) -> float:
    """part / whole as a rounded percentage; zero when whole is zero."""
    if not whole:
        return 0.0
    return round(float(part) / float(whole) * 100.0, digits)


def mean_or_zero(values, digits=2) -> float:
    values = [v for v in values if v is not None]
    if not values:
        return 0.0
    return round(float(np.mean(values)), digits)


def to_jsonable(value):
    """Convert report structures into plain JSON-compatible values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value


async def gather_or_cancel(*aws):
    """Await every awaitable concurrently and return their results in order.

    If any of them raises, the others still running are cancelled and the
    first exception propagates. Cancelling the caller cancels them all.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        failed = [t for t in done if not t.cancelled() and t.exception() is not None]
        if failed:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)
            # Report the failure of the earliest listed task
            first = min(failed, key=tasks.index)
            raise first.exception()
        return [t.result() for t in tasks]
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise
