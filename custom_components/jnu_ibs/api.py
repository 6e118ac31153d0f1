"""API client for JNU IBS integration."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Optional, Any
import aiohttp
from aiohttp import ClientSession, ClientError

from .const import (
    API_BILL_COST,
    API_LOGIN,
    API_METRICAL_DATA,
    API_PAYMENT_RECORD,
    API_SUBSIDY,
    API_USER_INFO,
    CONNECT_TIMEOUT,
    DEFAULT_RECORD_COUNT,
    FULL_RANGE_END,
    FULL_RANGE_START,
    READ_TIMEOUT,
    USER_AGENT,
    EnergyType,
)
from .crypto import encrypt_and_base64, make_token
from .endpoint import EndpointResolver
from .helpers import format_date, get_trend_date_range
from .overview_reducer import reduce_overview
from .session import IBSSession

_LOGGER = logging.getLogger(__name__)


class IBSAuthenticationError(Exception):
    """Exception raised when not logged in or when login is rejected."""

    pass


class IBSAPIError(Exception):
    """Exception raised for transport errors (network, timeout, bad status or payload)."""

    pass


class IBSAPI:
    """JNU IBS API client.

    Holds one login session and one endpoint resolver. Instances are
    independent, so several rooms or endpoint configurations can coexist.
    """

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        resolver: Optional[EndpointResolver] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialize the IBS API client."""
        self._session = session
        self._resolver = resolver or EndpointResolver()
        self._ibs_session = IBSSession()
        self._timeout = aiohttp.ClientTimeout(
            sock_connect=CONNECT_TIMEOUT, sock_read=READ_TIMEOUT
        )
        if base_url:
            self._resolver.override(base_url)

    @property
    def resolver(self) -> EndpointResolver:
        """Return the endpoint resolver."""
        return self._resolver

    @property
    def room(self) -> str | None:
        """Return the room code of the current session."""
        return self._ibs_session.room

    @property
    def customer_id(self) -> str | None:
        """Return the customer id of the current session."""
        return self._ibs_session.customer_id

    async def _get_session(self) -> ClientSession:
        """Get or create aiohttp session."""
        if self._session is None:
            self._session = ClientSession()
        return self._session

    async def async_close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None

    def set_base_url(self, url: str | None) -> None:
        """Set or clear the operator endpoint override."""
        if url:
            self._resolver.override(url)
        else:
            self._resolver.clear_override()

    def is_authenticated(self) -> bool:
        """Return True if a login session is active."""
        return self._ibs_session.is_authenticated

    def logout(self) -> None:
        """Clear the session and return to the primary endpoint."""
        self._ibs_session.clear()
        self._resolver.reset()

    async def _login_at(self, base_url: str, payload: dict[str, str]) -> str:
        """Post the login payload to one endpoint and return the customer id."""
        session = await self._get_session()
        url = f"{base_url}{API_LOGIN}"

        try:
            async with session.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise IBSAuthenticationError(
                        f"Login failed with status {response.status}: {error_text}"
                    )
                data = await response.json(content_type=None)
        except (ClientError, asyncio.TimeoutError) as err:
            raise IBSAuthenticationError(f"Network error during login: {err}") from err
        except ValueError as err:
            raise IBSAuthenticationError(f"Login response is not valid JSON: {err}") from err

        body = data.get("d") if isinstance(data, dict) else None
        if not isinstance(body, dict):
            raise IBSAuthenticationError(f"Malformed login response: {data}")

        results = body.get("ResultList")
        if body.get("Success") and isinstance(results, list) and results:
            first = results[0]
            customer_id = first.get("customerId") if isinstance(first, dict) else None
            if customer_id:
                return str(customer_id)

        raise IBSAuthenticationError(body.get("Msg") or "Login failed")

    async def login(self, room: str) -> None:
        """Log in with a room code.

        The room code is both the user name and, encrypted, the password. If
        the primary endpoint fails and no override is set, the login is tried
        once on the fallback endpoint.

        Raises:
            IBSAuthenticationError: The login was rejected or could not be sent
        """
        clean_room = room.strip().upper()
        payload = {"user": clean_room, "password": encrypt_and_base64(clean_room)}
        base_url = self._resolver.resolve()
        fallback_url = self._resolver.failover_url()

        try:
            customer_id = await self._login_at(base_url, payload)
        except IBSAuthenticationError as err:
            if fallback_url is None:
                _LOGGER.error("Login failed for room %s: %s", clean_room, err)
                raise

            _LOGGER.warning("Login failed on primary endpoint (%s), trying fallback...", err)
            try:
                customer_id = await self._login_at(fallback_url, payload)
            except IBSAuthenticationError as fallback_err:
                _LOGGER.error("Fallback login failed: %s", fallback_err)
                raise err
            self._resolver.switch_to_fallback()

        self._ibs_session.establish(customer_id, clean_room)
        _LOGGER.debug("Logged in as room %s", clean_room)

    def _get_headers(self) -> dict[str, str]:
        """Build headers for an authenticated request with a fresh token."""
        customer_id = self._ibs_session.customer_id
        if not customer_id:
            raise IBSAuthenticationError("Not logged in")

        token, token_time = make_token(customer_id, datetime.now())
        return {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            "Token": token,
            "DateTime": token_time,
        }

    async def _post_to(
        self, base_url: str, procedure: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        """Make one authenticated POST against a base URL."""
        headers = self._get_headers()
        session = await self._get_session()
        url = f"{base_url}{procedure}"

        try:
            async with session.post(
                url, json=body, headers=headers, timeout=self._timeout
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise IBSAPIError(
                        f"API request {procedure} failed with status {response.status}: {error_text}"
                    )
                data = await response.json(content_type=None)
        except (ClientError, asyncio.TimeoutError) as err:
            raise IBSAPIError(f"Network error during API request {procedure}: {err}") from err
        except ValueError as err:
            raise IBSAPIError(f"API request {procedure} returned invalid JSON: {err}") from err

        if not isinstance(data, dict) or not isinstance(data.get("d"), dict):
            raise IBSAPIError(f"API request {procedure} returned a malformed payload: {data}")
        return data

    async def _post(
        self, procedure: str, body: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Make an authenticated request with single-shot endpoint failover.

        Returns:
            The full response payload ({"d": {...}})

        Raises:
            IBSAuthenticationError: Not logged in (no request is sent)
            IBSAPIError: The request failed; if the fallback also failed, the
                primary error is raised
        """
        if not self._ibs_session.is_authenticated:
            raise IBSAuthenticationError("Not logged in")
        body = body or {}
        # Decided before sending; a concurrent request may switch the resolver
        base_url = self._resolver.resolve()
        fallback_url = self._resolver.failover_url()

        try:
            return await self._post_to(base_url, procedure, body)
        except IBSAPIError as err:
            if fallback_url is None:
                raise

            _LOGGER.warning(
                "Primary endpoint failed for %s (%s), attempting fallback...",
                procedure,
                err,
            )
            try:
                data = await self._post_to(fallback_url, procedure, body)
            except IBSAPIError as fallback_err:
                _LOGGER.error("Fallback also failed for %s: %s", procedure, fallback_err)
            else:
                self._resolver.switch_to_fallback()
                return data
            raise

    async def get_user_info(self) -> dict[str, Any]:
        """Get account information (room info list with the balance)."""
        return await self._post(API_USER_INFO)

    async def get_subsidy(self) -> dict[str, Any]:
        """Get remaining subsidy allowances."""
        return await self._post(
            API_SUBSIDY, {"startDate": FULL_RANGE_START, "endDate": FULL_RANGE_END}
        )

    async def get_bill_cost(self) -> dict[str, Any]:
        """Get billing details for all utility types."""
        return await self._post(
            API_BILL_COST,
            {
                "energyType": int(EnergyType.ALL),
                "startDate": FULL_RANGE_START,
                "endDate": FULL_RANGE_END,
            },
        )

    async def fetch_overview(self) -> dict[str, Any]:
        """Fetch account info, subsidies and bills in parallel and reduce them.

        A failure in any of the three requests fails the whole fetch.
        """
        info, subsidy, bill = await asyncio.gather(
            self.get_user_info(),
            self.get_subsidy(),
            self.get_bill_cost(),
        )
        return reduce_overview(self.room, info, subsidy, bill)

    async def fetch_records(
        self, page: int = 1, count: int = DEFAULT_RECORD_COUNT
    ) -> list[dict[str, Any]]:
        """Get one page of payment records.

        Args:
            page: Page number, starting at 1
            count: Records per page

        Returns:
            List of records; empty if the backend reports none
        """
        if page < 1 or count < 1:
            raise ValueError("page and count must be at least 1")

        data = await self._post(
            API_PAYMENT_RECORD,
            {"startIdx": (page - 1) * count, "recordCount": count},
        )
        return data["d"].get("ResultList") or []

    async def fetch_trends(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> list[dict[str, Any]]:
        """Get daily usage series for all utility types for one month.

        Args:
            year: Year (defaults to the current year)
            month: Month 1-12 (defaults to the current month)

        Returns:
            List of {'energyType', 'datas': [{'recordTime', 'dataValue'}]}
        """
        today = date.today()
        if year is None:
            year = today.year
        if month is None:
            month = today.month
        if not 1 <= month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {month}")
        start_date, end_date = get_trend_date_range(year, month, today)

        data = await self._post(
            API_METRICAL_DATA,
            {
                "startDate": format_date(start_date),
                "endDate": format_date(end_date),
                "interval": 1,
                "energyType": int(EnergyType.ALL),
            },
        )
        return data["d"].get("ResultList") or []
