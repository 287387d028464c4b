# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

import logging
import time
from typing import Callable

import requests

from dcos_provision.errors import ReadinessTimeoutError

log = logging.getLogger("dcos_provision")

# what a network probe raises while the endpoint is still coming up
PROBE_ERRORS: tuple[type[Exception], ...] = (requests.RequestException, OSError)


def wait_until_ready(
    check: Callable[[], bool],
    *,
    timeout: float,
    interval: float,
    transient: tuple[type[Exception], ...] = (Exception,),
    on_attempt: Callable[[int], None] | None = None,
    description: str = "condition",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Call check until it returns truthy or the deadline passes.

    check: called immediately, then every `interval` seconds
    timeout: seconds, measured against the clock on every attempt
    transient: exception types that mean "not ready yet"
    on_attempt: callback(attempt) before each call

    Returns the number of attempts. Raises ReadinessTimeoutError.
    """
    deadline = clock() + timeout
    attempt = 0
    while True:
        attempt += 1
        if on_attempt:
            on_attempt(attempt)
        try:
            if check():
                return attempt
        except transient as exc:
            log.debug("%s not ready (attempt %d): %s", description, attempt, exc)

        remaining = deadline - clock()
        if remaining <= 0:
            raise ReadinessTimeoutError(
                f"Timed out after {timeout}s waiting for {description}",
                timeout=timeout,
                attempts=attempt,
            )
        sleep(min(interval, remaining))


def probe_address(address: str, *, request_timeout: float = 10.0) -> bool:
    """
    GET the address. Connection errors and HTTP error statuses mean "not ready".
    """
    log.info("Probing %s ...", address)
    try:
        r = requests.get(address, timeout=request_timeout)
        r.raise_for_status()
    except requests.RequestException as exc:
        log.debug("probe %s failed: %s", address, exc)
        return False
    return True
