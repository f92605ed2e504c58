"""Device authorization polling loop (RFC 8628 section 3.4-3.5).

The loop is a plain ``while`` with an awaited sleep. Each tick waits for the
previous token response before sleeping again, so requests never overlap and
a ``slow_down`` takes effect on the very next wait. Sleep and clock are
injectable so tests can drive the state machine without real delays.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from structlog import get_logger

from orbital_cli.auth.device.client import DeviceAuthorizationClient
from orbital_cli.auth.models import (
    Credential,
    DeviceGrant,
    PollErrorCode,
    PollState,
    TokenErrorResponse,
    TokenResponse,
)
from orbital_cli.exceptions import (
    AccessDeniedError,
    DeviceAuthorizationError,
    DeviceCodeExpiredError,
    ProtocolError,
    SlowDownError,
)


logger = get_logger(__name__)

SLOW_DOWN_INCREMENT_SECONDS = 5

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


@dataclass(frozen=True)
class PollProgress:
    """Snapshot passed to the progress callback after each non-terminal tick."""

    attempt: int
    status: PollErrorCode
    interval: int
    elapsed: float


class DevicePoller:
    """Drives one device authorization from grant request to credential."""

    def __init__(
        self,
        client: DeviceAuthorizationClient,
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
        on_progress: Callable[[PollProgress], None] | None = None,
    ) -> None:
        self.client = client
        self._sleep = sleep
        self._clock = clock
        self._on_progress = on_progress
        self.state = PollState.REQUESTED
        self.interval: int | None = None
        self.attempts = 0

    async def obtain_credential(
        self,
        client_id: str | None = None,
        scope: str | None = None,
        on_grant: Callable[[DeviceGrant], None] | None = None,
    ) -> Credential:
        """Run the whole flow: request a grant, show it, poll for the token.

        Args:
            client_id: OAuth client ID
            scope: Space separated scopes
            on_grant: Called once with the grant so the caller can display the
                user code and verification URL

        Raises:
            AccessDeniedError: The operator denied the request
            DeviceCodeExpiredError: The code expired before approval
            NetworkError: The server could not be reached
            ProtocolError: The server answered with something unexpected

        """
        try:
            grant = await self.client.request_device_code(client_id, scope)
        except DeviceAuthorizationError:
            self.state = PollState.FAILED
            raise

        # The grant lifetime counts from issue, not from when the caller is done showing it
        issued = self._clock()
        if on_grant is not None:
            on_grant(grant)

        return await self.poll(grant, client_id, started=issued)

    async def poll(
        self,
        grant: DeviceGrant,
        client_id: str | None = None,
        started: float | None = None,
    ) -> Credential:
        """Poll the token endpoint until a terminal outcome.

        ``started`` is the clock reading when the grant was issued; it defaults
        to now.
        """
        self.state = PollState.POLLING
        self.interval = grant.interval
        self.attempts = 0
        if started is None:
            started = self._clock()
        deadline = started + grant.expires_in

        while True:
            await self._sleep(self.interval)

            # Bounded by the grant lifetime even if the server never says expired_token
            if self._clock() > deadline:
                self.state = PollState.EXPIRED
                logger.info(
                    "device_code_expired_locally",
                    attempts=self.attempts,
                    expires_in=grant.expires_in,
                )
                raise DeviceCodeExpiredError()

            self.attempts += 1
            try:
                result = await self.client.poll_token(grant.device_code, client_id)
            except DeviceAuthorizationError:
                self.state = PollState.FAILED
                raise

            if isinstance(result, TokenResponse):
                self.state = PollState.AUTHORIZED
                logger.info("device_authorized", attempts=self.attempts)
                return Credential.from_token_response(result)

            try:
                status = self._check_poll_error(result)
            except SlowDownError:
                self.interval += SLOW_DOWN_INCREMENT_SECONDS
                status = PollErrorCode.SLOW_DOWN
                logger.info("poll_slow_down", interval=self.interval)
            else:
                logger.debug("poll_pending", attempt=self.attempts)

            if self._on_progress is not None:
                self._on_progress(
                    PollProgress(
                        attempt=self.attempts,
                        status=status,
                        interval=self.interval,
                        elapsed=self._clock() - started,
                    )
                )

    def _check_poll_error(self, result: TokenErrorResponse) -> PollErrorCode:
        """Classify a token endpoint error.

        Returns:
            AUTHORIZATION_PENDING when polling should simply continue

        Raises:
            SlowDownError: The interval must grow before the next tick
            AccessDeniedError: Terminal, the operator said no
            DeviceCodeExpiredError: Terminal, the code is no longer valid
            ProtocolError: Terminal, any other error code

        """
        error = result.error
        if error == PollErrorCode.AUTHORIZATION_PENDING:
            return PollErrorCode.AUTHORIZATION_PENDING
        if error == PollErrorCode.SLOW_DOWN:
            raise SlowDownError()
        if error == PollErrorCode.ACCESS_DENIED:
            self.state = PollState.DENIED
            logger.info("device_access_denied", attempts=self.attempts)
            raise AccessDeniedError()
        if error == PollErrorCode.EXPIRED_TOKEN:
            self.state = PollState.EXPIRED
            logger.info("device_code_expired", attempts=self.attempts)
            raise DeviceCodeExpiredError()

        self.state = PollState.FAILED
        logger.warning(
            "device_poll_failed",
            error=error,
            error_description=result.error_description,
        )
        raise ProtocolError(
            f"Error: {result.error_description or error}",
            error_code=error,
        )
