"""Retry helper for reads that race with DOM mutation."""

import time
import random
from typing import Callable, Tuple, Type

from selenium.common.exceptions import StaleElementReferenceException


def retry_op(
    fn: Callable,
    retries: int = 2,
    base_delay: float = 0.15,
    retry_on: Tuple[Type[BaseException], ...] = (StaleElementReferenceException,),
):
    """
    Call ``fn`` again when it fails with one of ``retry_on``.

    Args:
        fn: Zero-argument callable to run
        retries: Number of retry attempts after the first call (default: 2)
        base_delay: Base delay between attempts in seconds, jittered up to 2x

    Returns:
        The result of the first successful call

    Raises:
        The last exception once all retries are used
    """
    for attempt in range(retries + 1):
        try:
            return fn()
        except retry_on:
            if attempt == retries:
                raise
            time.sleep(base_delay * (1.0 + random.random()))
