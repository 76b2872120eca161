"""HTTP plumbing shared by the catalog clients."""

import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import requests
from loguru import logger

F = TypeVar("F", bound=Callable[..., Any])

USER_AGENT = "marquee/0.1"
MAX_BACKOFF_SECONDS = 30.0


def is_transient(exc: BaseException) -> bool:
    """Connection problems, timeouts, 429 and 5xx are worth another attempt.

    Other HTTP errors (404 for an unknown id, 401 for a bad key) won't
    change on retry.
    """
    if isinstance(exc, requests.HTTPError):
        status = exc.response.status_code if exc.response is not None else None
        return status is None or status == 429 or status >= 500
    return isinstance(exc, (requests.RequestException, ConnectionError, TimeoutError))


def _retry_after(exc: BaseException) -> float | None:
    response = getattr(exc, "response", None)
    if response is None:
        return None
    try:
        return float(response.headers.get("Retry-After", ""))
    except (TypeError, ValueError):
        return None


def retry_network_operation(max_retries: int = 3, base_delay: float = 1.0) -> Callable[[F], F]:
    """Retry transient ``requests`` failures with exponential backoff.

    Non-transient failures are raised on the first attempt.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = base_delay
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except (requests.RequestException, ConnectionError, TimeoutError) as e:
                    if not is_transient(e):
                        raise
                    if attempt == max_retries:
                        logger.error(f"Giving up on {func.__name__} after {attempt + 1} attempts: {e}")
                        raise

                    attempt += 1
                    wait = min(_retry_after(e) or delay, MAX_BACKOFF_SECONDS)
                    logger.warning(
                        f"{func.__name__} failed ({e}); retry {attempt}/{max_retries} in {wait:.1f}s"
                    )
                    time.sleep(wait)
                    delay = min(delay * 2, MAX_BACKOFF_SECONDS)

        return wrapper  # type: ignore

    return decorator


def new_session() -> requests.Session:
    """A session with the headers every catalog client sends."""
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    return session
