"""
Readiness polling with bounded linear retry.

Containers start asynchronously, so the first requests after `run -d` are
expected to fail. The poller retries with a fixed delay between attempts
until a response arrives or the attempt budget is exhausted:

- any received HTTP response counts as ready, whatever its status code
- exhaustion is reported as PollTimeout, never as an exception
- the same retry loop is available for arbitrary predicates (log lines)
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

import requests
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 10
DEFAULT_DELAY = 1.0
DEFAULT_TIMEOUT = 5.0


@dataclass
class Ready:
    """A response was received."""

    url: str
    body: str
    status_code: int
    attempts: int

    @property
    def ready(self) -> bool:
        return True


@dataclass
class PollTimeout:
    """No response within the attempt budget."""

    url: str
    attempts: int

    @property
    def ready(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"no response from {self.url} after {self.attempts} attempts"


PollResult = Union[Ready, PollTimeout]


def join_url(base_url: str, path: str = "/") -> str:
    """Join a base URL and a request path with exactly one slash."""
    return base_url.rstrip("/") + "/" + path.lstrip("/")


class ReadinessPoller:
    """
    Bounded-retry probe for services starting inside containers.

    Args:
        max_attempts: Default number of attempts per poll
        delay: Fixed delay between attempts, in seconds
        timeout: Per-request timeout, in seconds
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_ATTEMPTS,
        delay: float = DEFAULT_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay
        self.timeout = timeout
        self.session = requests.Session()

    def attempts_for(self, max_attempts: Optional[int] = None) -> int:
        """Attempt budget for one poll: the override, or the default when None."""
        if max_attempts is None:
            return self.max_attempts
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        return max_attempts

    def poll_http(
        self, base_url: str, path: str = "/", max_attempts: Optional[int] = None
    ) -> PollResult:
        """
        GET base_url + path until a response arrives.

        Args:
            base_url: Service base URL (e.g. http://127.0.0.1:32768)
            path: Request path
            max_attempts: Override of the default attempt budget

        Returns:
            Ready with the response body, or PollTimeout
        """
        url = join_url(base_url, path)
        attempts = self.attempts_for(max_attempts)

        for attempt in range(1, attempts + 1):
            try:
                response = self.session.get(url, timeout=self.timeout)
            except RequestException as e:
                logger.debug(f"Poll {attempt}/{attempts} of {url} failed: {e}")
                if attempt < attempts:
                    time.sleep(self.delay)
                continue

            logger.debug(
                f"Poll {attempt}/{attempts} of {url}: HTTP {response.status_code}"
            )
            return Ready(
                url=url,
                body=response.text,
                status_code=response.status_code,
                attempts=attempt,
            )

        logger.warning(f"Gave up on {url} after {attempts} attempts")
        return PollTimeout(url=url, attempts=attempts)

    def poll_until(
        self,
        predicate: Callable[[], bool],
        max_attempts: Optional[int] = None,
        description: str = "condition",
    ) -> bool:
        """
        Evaluate predicate until it returns True or the budget runs out.

        Returns:
            True if the predicate held within the budget
        """
        attempts = self.attempts_for(max_attempts)

        for attempt in range(1, attempts + 1):
            if predicate():
                logger.debug(f"{description}: met after {attempt} attempt(s)")
                return True
            if attempt < attempts:
                time.sleep(self.delay)

        logger.warning(f"{description}: not met after {attempts} attempts")
        return False

    def get(self, base_url: str, path: str = "/") -> requests.Response:
        """Single GET against a service already known to be up."""
        url = join_url(base_url, path)
        logger.debug(f"GET {url}")
        return self.session.get(url, timeout=self.timeout)
