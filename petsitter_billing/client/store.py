import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from petsitter_billing.client.errors import AuthenticationError, BillingClientError
from petsitter_billing.services.subscription import SubscriptionStatus

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 60.0


@dataclass(frozen=True)
class ClientSession:
    user_id: str
    access_token: str


@dataclass(frozen=True)
class SubscriptionSnapshot:
    status: SubscriptionStatus | None = None
    loading: bool = False
    error: str | None = None


Listener = Callable[[SubscriptionSnapshot], None]


class StatusClient(Protocol):
    async def check_subscription(self, access_token: str) -> SubscriptionStatus: ...


class SubscriptionStore:
    """Session-scoped cache of the current tenant's subscription status.

    Every resolution carries a request token; only the most recently issued
    request may apply its result, so slow responses never overwrite newer
    ones. A failed refresh keeps the last known status when there is one.
    """

    def __init__(self, client: StatusClient, refresh_interval: float = DEFAULT_REFRESH_SECONDS) -> None:
        self._client = client
        self._refresh_interval = refresh_interval
        self._session: ClientSession | None = None
        self._snapshot = SubscriptionSnapshot(status=SubscriptionStatus.no_session())
        self._latest_request = 0
        self._listeners: list[Listener] = []
        self._timer: asyncio.Task | None = None
        self._closed = False

    @property
    def snapshot(self) -> SubscriptionSnapshot:
        return self._snapshot

    @property
    def session(self) -> ClientSession | None:
        return self._session

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._snapshot)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: SubscriptionSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Subscription listener failed")

    def _is_current(self, request_id: int) -> bool:
        return not self._closed and request_id == self._latest_request

    async def refresh(self) -> SubscriptionSnapshot:
        if self._closed:
            return self._snapshot
        session = self._session
        if session is None:
            self._publish(SubscriptionSnapshot(status=SubscriptionStatus.no_session()))
            return self._snapshot

        self._latest_request += 1
        request_id = self._latest_request
        previous = self._snapshot.status
        self._publish(SubscriptionSnapshot(status=previous, loading=True, error=self._snapshot.error))

        try:
            status = await self._client.check_subscription(session.access_token)
        except AuthenticationError as exc:
            if self._is_current(request_id):
                logger.warning("Subscription check rejected session %s: %s", session.user_id, exc)
                self._stop_timer()
                self._publish(
                    SubscriptionSnapshot(status=SubscriptionStatus.no_session(str(exc)), error=str(exc))
                )
        except BillingClientError as exc:
            if self._is_current(request_id):
                logger.warning("Subscription check failed for %s: %s", session.user_id, exc)
                self._keep_last_known(exc)
        except Exception as exc:
            if self._is_current(request_id):
                logger.exception("Unexpected error checking subscription for %s", session.user_id)
                self._keep_last_known(exc)
        else:
            if self._is_current(request_id):
                self._publish(SubscriptionSnapshot(status=status))
            else:
                logger.debug("Discarding stale subscription result %s", request_id)
        return self._snapshot

    def _keep_last_known(self, exc: Exception) -> None:
        error = str(exc) or exc.__class__.__name__
        fallback = self._snapshot.status or SubscriptionStatus.transient_error(error)
        self._publish(SubscriptionSnapshot(status=fallback, error=error))

    async def set_session(self, session: ClientSession | None) -> None:
        if self._closed:
            return
        previous = self._session
        self._session = session
        if previous is not None and session is not None and previous.user_id == session.user_id:
            # Polling stops after a rejected credential; a fresh one resumes it.
            if self._timer is None and session.access_token != previous.access_token:
                self._start_timer()
                await self.refresh()
            return

        self._stop_timer()
        self._latest_request += 1
        if session is None:
            self._publish(SubscriptionSnapshot(status=SubscriptionStatus.no_session()))
            return

        self._publish(SubscriptionSnapshot(loading=True))
        self._start_timer()
        await self.refresh()

    async def notify_focus(self) -> SubscriptionSnapshot:
        return await self.refresh()

    async def _auto_refresh(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            await self.refresh()

    def _start_timer(self) -> None:
        self._timer = asyncio.create_task(self._auto_refresh())

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def close(self) -> None:
        self._closed = True
        self._stop_timer()
        self._listeners.clear()
