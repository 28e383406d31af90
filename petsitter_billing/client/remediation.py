import logging
import webbrowser
from typing import Callable, Protocol

from petsitter_billing.client.errors import AuthenticationError
from petsitter_billing.client.store import ClientSession

logger = logging.getLogger(__name__)


class RedirectClient(Protocol):
    async def create_checkout(self, access_token: str, price_id: str) -> str: ...

    async def create_portal(self, access_token: str) -> str: ...


class RemediationActions:
    """Send the user to the billing provider's hosted pages.

    Neither action touches the subscription store; callers refresh it once
    the user comes back from the hosted flow.
    """

    def __init__(
        self,
        client: RedirectClient,
        session_getter: Callable[[], ClientSession | None],
        opener: Callable[[str], object] = webbrowser.open_new_tab,
    ) -> None:
        self._client = client
        self._session_getter = session_getter
        self._opener = opener

    def _access_token(self) -> str:
        session = self._session_getter()
        if session is None:
            raise AuthenticationError("No active session")
        return session.access_token

    async def start_checkout(self, price_id: str) -> str:
        url = await self._client.create_checkout(self._access_token(), price_id)
        logger.info("Opening checkout for price %s", price_id)
        self._opener(url)
        return url

    async def open_billing_portal(self) -> str:
        url = await self._client.create_portal(self._access_token())
        logger.info("Opening billing portal")
        self._opener(url)
        return url
