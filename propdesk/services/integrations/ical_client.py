"""
HTTP client for external iCal feeds.
"""

from typing import Optional

import httpx

from propdesk.config.settings import settings
from propdesk.core.exceptions import CalendarFetchError
from propdesk.core.logging import get_logger

logger = get_logger(__name__)


class ICalClient:
    """
    Fetches feed bodies with a bounded timeout.

    Args:
        timeout: Seconds before a request is abandoned
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout if timeout is not None else settings.CALENDAR_FETCH_TIMEOUT_SECONDS
        self.transport = transport

    def fetch(self, url: str) -> str:
        """
        Download a feed.

        Raises:
            CalendarFetchError: network failure, timeout or non-200 status
        """
        try:
            with httpx.Client(
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
                headers={"Accept": "text/calendar, */*;q=0.5"},
            ) as client:
                response = client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("Calendar fetch timed out", extra={"url": url, "timeout": self.timeout})
            raise CalendarFetchError(url, f"timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            logger.warning("Calendar fetch failed", extra={"url": url, "error": str(exc)})
            raise CalendarFetchError(url, str(exc)) from exc

        if response.status_code != 200:
            raise CalendarFetchError(url, f"unexpected status {response.status_code}")

        return response.text
