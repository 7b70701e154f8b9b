import logging
from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class StorageUnavailable(Exception):
    """The record store could not complete a read or write."""


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Translate backend failures raised inside the block into StorageUnavailable."""
    try:
        yield
    except (ClientError, BotoCoreError) as exc:
        logger.error("call-stats: store %s failed: %s", action, exc)
        raise StorageUnavailable(f"record store {action} failed") from exc
