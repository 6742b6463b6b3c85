"""Protocol-neutral pieces of the request pipeline.

Both gateways run every call through the same two interceptors, in this
order::

    tracer -> auth -> [protocol-specific stages] -> handler

The HTTP side wraps them as ASGI middleware (see ``middleware``), the RPC
side as grpc server interceptors (see ``rpc``). What they check and log is
defined once, here.
"""
import logging
import time
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from .errors import AuthError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Api-Key"
API_KEY_METADATA = "x-api-key"


def authenticate(expected: str, supplied: Optional[Iterable[str]]) -> None:
    """Raise AuthError unless one of the supplied keys equals ``expected``."""
    for key in supplied or ():
        if key == expected:
            return
    raise AuthError("authentication failed")


@contextmanager
def trace(operation: str) -> Iterator[None]:
    """Log how long the wrapped block took, whether or not it raised."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %.3fms", operation, elapsed_ms)
