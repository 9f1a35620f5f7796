"""PagerDuty incident listing client."""

import logging
from datetime import datetime

import httpx

from oncall.errors import IncidentRetrievalError
from oncall.models import Incident

logger = logging.getLogger("oncall.pagerduty.client")

DEFAULT_API_URL = "https://api.pagerduty.com"
DEFAULT_PAGE_SIZE = 50
DEFAULT_TIMEOUT = 30.0
ACCEPT_HEADER = "application/vnd.pagerduty+json;version=2"
SORT_ORDER = "created_at:desc"


class PagerDutyClient:
    """Fetches incidents from the PagerDuty REST API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        time_zone: str = "MST",
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize PagerDuty client.

        Args:
            api_key: PagerDuty REST API key.
            api_url: Base URL of the API.
            time_zone: Timezone the API should render timestamps in.
            page_size: Number of incidents per page.
            timeout: Request timeout in seconds.
        """
        self.api_url = api_url.rstrip("/")
        self.time_zone = time_zone
        self.page_size = page_size
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "accept": ACCEPT_HEADER,
                "authorization": f"Token token={api_key}",
            },
        )

    def get_incident_page(self, since: datetime, offset: int, limit: int) -> dict:
        """Get a single page of incidents.

        Args:
            since: Only incidents created after this moment are listed.
            offset: Number of incidents to skip.
            limit: Number of incidents to fetch.

        Returns:
            The decoded response body, with 'incidents' and 'more' keys.

        Raises:
            IncidentRetrievalError: On transport errors, non-2xx responses or
                a body that is not an incident listing.
        """
        params = {
            "since": since.isoformat(),
            "offset": offset,
            "limit": limit,
            "time_zone": self.time_zone,
            "sort_by": SORT_ORDER,
        }

        try:
            response = self._client.get(f"{self.api_url}/incidents", params=params)
            response.raise_for_status()
            page = response.json()
        except httpx.HTTPStatusError as e:
            raise IncidentRetrievalError(
                f"PagerDuty HTTP error: {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise IncidentRetrievalError(f"PagerDuty request error: {e}") from e
        except ValueError as e:
            raise IncidentRetrievalError(f"PagerDuty returned invalid JSON: {e}") from e

        if not isinstance(page, dict) or not isinstance(page.get("incidents"), list):
            raise IncidentRetrievalError("PagerDuty response has no incident list")

        return page

    def fetch_all_incidents(self, since: datetime) -> list[Incident]:
        """Get every incident created since the given moment.

        Pages are requested one after another and concatenated in response
        order until a page reports that no more pages remain.

        Args:
            since: Start of the reporting window.

        Returns:
            List of PagerDuty incidents.
        """
        incidents: list[Incident] = []
        page_num = 0
        more_pages = True

        while more_pages:
            offset = page_num * self.page_size
            page = self.get_incident_page(since, offset, self.page_size)
            incidents.extend(page["incidents"])
            more_pages = bool(page.get("more", False))
            logger.debug(
                f"Fetched page {page_num} ({len(page['incidents'])} incidents, more={more_pages})"
            )
            page_num += 1

        logger.info(f"Fetched {len(incidents)} incidents since {since.isoformat()}")
        return incidents

    def close(self) -> None:
        """Close the HTTP client."""
        if hasattr(self, "_client"):
            self._client.close()

    def __enter__(self) -> "PagerDutyClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def fetch_all_incidents(api_key: str, since: datetime, **config) -> list[Incident]:
    """Fetch all incidents since a moment with a short-lived client.

    Args:
        api_key: PagerDuty REST API key.
        since: Start of the reporting window.
        **config: Extra PagerDutyClient keyword arguments.

    Returns:
        List of PagerDuty incidents.
    """
    with PagerDutyClient(api_key, **config) as client:
        return client.fetch_all_incidents(since)
