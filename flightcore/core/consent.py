"""Human-in-the-loop consent for plugin installs.

An install that carries native plugins must be approved by the user. The
gate notifies the front-end with a ConsentRequest and suspends the install
until the front-end answers through submit_consent(). Each pending request
gets its own one-shot slot keyed by request id, so decisions cannot be
delivered to the wrong install.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from flightcore.core.errors import ChannelError, ConsentTimedOutError, UserDeniedError
from flightcore.core.modstring import ParsedModString

logger = logging.getLogger("flightcore.consent")


class ConsentState(str, Enum):
    """Lifecycle of a single consent request."""

    IDLE = "idle"
    AWAITING_DECISION = "awaiting_decision"
    APPROVED = "approved"
    DENIED = "denied"
    TIMED_OUT = "timed_out"


@dataclass
class ConsentRequest:
    """A pending plugin install decision, as shown to the front-end."""

    package: ParsedModString
    plugins: list[str]
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ConsentState = ConsentState.IDLE


ConsentNotifier = Callable[[ConsentRequest], None]


class ConsentGate:
    """Delivers exactly one human decision to exactly one waiting install.

    Args:
        notifier: Called with each new request; the front-end is expected to
            prompt the user and later call submit_consent()
        timeout: Seconds to wait for a decision, or None to wait forever
    """

    def __init__(self, notifier: ConsentNotifier, timeout: float | None = None):
        self.notifier = notifier
        self.timeout = timeout
        self._pending: dict[str, tuple[ConsentRequest, asyncio.Future[bool]]] = {}
        self._buffered: bool | None = None

    @property
    def pending(self) -> list[str]:
        """Request ids still awaiting a decision."""
        return list(self._pending)

    async def request_consent(self, package: ParsedModString, plugins: list[Path]) -> None:
        """Ask the user to approve installing plugins and wait for the answer.

        Args:
            package: Package being installed
            plugins: Detected plugin files

        Raises:
            UserDeniedError: If the user denies the install
            ConsentTimedOutError: If no decision arrives before the timeout
            ChannelError: If the front-end cannot be notified
        """
        request = ConsentRequest(package=package, plugins=[p.name for p in plugins])
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bool] = loop.create_future()
        self._pending[request.request_id] = (request, future)
        request.state = ConsentState.AWAITING_DECISION

        try:
            try:
                self.notifier(request)
            except Exception as e:
                raise ChannelError(
                    f"Failed to request plugin install approval: {e}", str(package)
                ) from e

            # The front-end is always notified, even when a buffered decision answers
            if self._buffered is not None and not future.done():
                logger.debug("Using buffered consent decision for %s", package)
                future.set_result(self._buffered)
                self._buffered = None

            logger.info("Waiting for approval to install plugins from %s", package)
            try:
                approved = await asyncio.wait_for(future, self.timeout)
            except TimeoutError as e:
                request.state = ConsentState.TIMED_OUT
                raise ConsentTimedOutError(self.timeout or 0, str(package)) from e
        finally:
            self._pending.pop(request.request_id, None)

        self._finish(request, approved)

    def _finish(self, request: ConsentRequest, approved: bool) -> None:
        if approved:
            request.state = ConsentState.APPROVED
            logger.info("Plugin install approved for %s", request.package)
            return
        request.state = ConsentState.DENIED
        logger.info("Plugin install denied for %s", request.package)
        raise UserDeniedError(package=str(request.package))

    def submit_consent(self, approved: bool, request_id: str | None = None) -> None:
        """Deliver a decision from the front-end.

        Without a request id the decision goes to the only pending request,
        or is buffered for the next request if none is pending. A buffered
        decision that has not been consumed is overwritten.

        Args:
            approved: True to allow the install
            request_id: Request the decision answers

        Raises:
            ChannelError: If the request id is unknown or the target is ambiguous
        """
        if request_id is None:
            if not self._pending:
                logger.debug("No pending consent request; buffering decision %s", approved)
                self._buffered = approved
                return
            if len(self._pending) > 1:
                raise ChannelError(
                    f"{len(self._pending)} consent requests are pending; a request id is required"
                )
            request_id = next(iter(self._pending))

        entry = self._pending.get(request_id)
        if entry is None:
            raise ChannelError(f"No pending consent request with id {request_id}")

        _, future = entry
        if future.done():
            raise ChannelError(f"Consent request {request_id} was already answered")
        future.set_result(approved)
