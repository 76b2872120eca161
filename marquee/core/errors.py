"""Error handling framework for Marquee.

Provides custom exception types and decorators for standardized error handling
across the ingestion pipeline. Nothing in the pipeline is fatal to the process:
each failure degrades to a placeholder or a fallback. Only resource exhaustion
(disk full, out of memory) is allowed to propagate to the host process.
"""

import errno
import inspect
import logging
from functools import wraps

logger = logging.getLogger(__name__)


# Custom Exception Hierarchy
class MarqueeError(Exception):
    """Base exception for all Marquee-specific errors."""

    pass


class IdentificationError(MarqueeError):
    """Name resolution failed.

    Degrades to an unidentified title with placeholder metadata.
    """

    pass


class MetadataFetchError(MarqueeError):
    """Metadata catalog lookup failed.

    The catalog id is kept; metadata falls back to placeholders.
    """

    pass


class SubtitleFetchError(MarqueeError):
    """Subtitle archive search or download failed.

    The pipeline moves on to the transcription fallback.
    """

    pass


class ExtractionError(MarqueeError):
    """A downloaded subtitle archive could not be unpacked.

    Only that item is dropped; other downloads continue.
    """

    pass


class TranscriptionError(MarqueeError):
    """Speech-to-text fallback failed.

    The title is left without captions.
    """

    pass


class QueueItemError(MarqueeError):
    """Processing a single library path failed.

    Caught per item; the queue keeps draining.
    """

    pass


class ConfigurationError(MarqueeError):
    """Configuration validation failed."""

    pass


def is_resource_exhaustion(exc: BaseException) -> bool:
    """Return True for failures that must reach the host process."""
    if isinstance(exc, MemoryError):
        return True
    return isinstance(exc, OSError) and exc.errno in (errno.ENOSPC, errno.EDQUOT)


# Error Handling Decorator
def handle_errors(
    *,
    error_types: tuple[type[Exception], ...],
    default_message: str,
    log_level: str = "error",
    reraise: bool = True,
    wrap_as: type[MarqueeError] | None = None,
):
    """Decorator for standardized error handling.

    Args:
        error_types: Tuple of exception types to catch
        default_message: Message to log when error occurs
        log_level: Logging level (error, warning, info, debug)
        reraise: Whether to re-raise the exception after logging
        wrap_as: Optionally wrap the caught exception in a MarqueeError subclass

    Example:
        @handle_errors(
            error_types=(subprocess.SubprocessError,),
            default_message="Audio extraction failed",
            wrap_as=TranscriptionError
        )
        def extract_audio():
            # ... operation ...
    """

    def decorator(func):
        def _handle(e: Exception):
            if is_resource_exhaustion(e):
                raise e
            log_func = getattr(logger, log_level)
            log_func(
                f"{default_message}: {e}",
                exc_info=(log_level == "error"),
            )
            if wrap_as:
                raise wrap_as(f"{default_message}: {e}") from e
            if reraise:
                raise e

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except error_types as e:
                _handle(e)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except error_types as e:
                _handle(e)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


# Context Manager for Error Handling
class error_context:
    """Context manager for error handling in specific code blocks.

    With ``suppress=True`` the logged error is swallowed, which is how a
    single failed item is dropped while its siblings continue.

    Example:
        with error_context(
            error_types=(zipfile.BadZipFile,),
            default_message="Failed to extract archive",
            wrap_as=ExtractionError
        ):
            # ... code that might raise errors ...
    """

    def __init__(
        self,
        *,
        error_types: tuple[type[Exception], ...],
        default_message: str,
        log_level: str = "error",
        wrap_as: type[MarqueeError] | None = None,
        suppress: bool = False,
    ):
        self.error_types = error_types
        self.default_message = default_message
        self.log_level = log_level
        self.wrap_as = wrap_as
        self.suppress = suppress
        self.error: BaseException | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None or not issubclass(exc_type, self.error_types):
            return False  # Don't suppress other exceptions
        if is_resource_exhaustion(exc_val):
            return False
        self.error = exc_val
        log_func = getattr(logger, self.log_level)
        log_func(
            f"{self.default_message}: {exc_val}",
            exc_info=(self.log_level == "error"),
        )
        if self.suppress:
            return True
        if self.wrap_as:
            raise self.wrap_as(f"{self.default_message}: {exc_val}") from exc_val
        return False  # Re-raise the original exception
