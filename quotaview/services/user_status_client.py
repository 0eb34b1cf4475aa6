"""Language server GetUserStatus client."""

import asyncio
import logging
from typing import Optional

import aiohttp
from pydantic import ValidationError

from ..models.config import MonitorConfig
from ..models.discovery import ServiceEndpoint
from ..models.quota import QuotaRecord
from ..models.user_status import UserStatusResponse

logger = logging.getLogger(__name__)


class UserStatusClient:
    """Queries the local language server for model quotas.

    Candidate ports are tried one at a time in discovery order. Several
    stale or unrelated listeners are normal, so a refused connection, an
    error status or an unusable body on one port just moves on to the next.
    """

    TOKEN_HEADER = "X-Codeium-Csrf-Token"

    def __init__(self, config: Optional[MonitorConfig] = None):
        self.config = config or MonitorConfig()

    def _headers(self, token: str) -> dict[str, str]:
        headers = {
            "Connect-Protocol-Version": self.config.protocol_version,
            "Content-Type": "application/json",
        }
        if token:
            headers[self.TOKEN_HEADER] = token
        return headers

    def _timeout(self) -> Optional[aiohttp.ClientTimeout]:
        if self.config.request_timeout_seconds is None:
            return None
        return aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)

    async def fetch_quotas(
        self,
        endpoint: ServiceEndpoint,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> Optional[list[QuotaRecord]]:
        """Fetch quota records from the first port that answers usefully.

        Returns None when no candidate port produced usable data.
        """
        if not endpoint.ports:
            return None

        if session is not None:
            return await self._try_ports(session, endpoint)

        kwargs = {}
        timeout = self._timeout()
        if timeout is not None:
            kwargs["timeout"] = timeout
        async with aiohttp.ClientSession(**kwargs) as owned_session:
            return await self._try_ports(owned_session, endpoint)

    async def _try_ports(
        self,
        session: aiohttp.ClientSession,
        endpoint: ServiceEndpoint,
    ) -> Optional[list[QuotaRecord]]:
        headers = self._headers(endpoint.token)
        payload = self.config.metadata.to_payload()

        for port in endpoint.ports:
            url = self.config.status_url(port)
            try:
                async with session.post(url, headers=headers, json=payload) as response:
                    if not 200 <= response.status < 300:
                        logger.debug("Port %d answered HTTP %d, trying next", port, response.status)
                        continue
                    data = await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                logger.debug("Port %d unreachable (%s), trying next", port, e.__class__.__name__)
                continue
            except ValueError as e:
                logger.debug("Port %d returned a non-JSON body: %s", port, e)
                continue

            try:
                records = UserStatusResponse.model_validate(data).to_records()
            except ValidationError as e:
                logger.debug("Port %d returned an unexpected body: %d validation error(s)", port, e.error_count())
                continue

            logger.debug("Port %d returned %d model(s)", port, len(records))
            return records

        return None
