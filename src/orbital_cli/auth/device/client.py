"""HTTP client for the authorization server's device endpoints."""

import os
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError
from structlog import get_logger

from orbital_cli.auth.models import (
    DeviceGrant,
    TokenErrorResponse,
    TokenResponse,
)
from orbital_cli.config.auth import DEVICE_CODE_GRANT_TYPE, AuthSettings
from orbital_cli.exceptions import (
    NetworkError,
    NotAuthenticatedError,
    ProtocolError,
)


logger = get_logger(__name__)


def _truncate_error_text(response_text: str) -> str:
    """Truncate response text for compact error logging.

    Args:
        response_text: Full response text

    Returns:
        Truncated text suitable for logging

    """
    if len(response_text) > 200:
        return f"{response_text[:100]}...{response_text[-50:]}"
    if len(response_text) > 100:
        return f"{response_text[:100]}..."
    return response_text


def _log_http_error_compact(operation: str, response: httpx.Response) -> None:
    """Log HTTP error response in compact format.

    Args:
        operation: Description of the operation that failed
        response: HTTP response object

    """
    verbose_api = os.environ.get("ORBITAL_VERBOSE_API", "false").lower() == "true"

    if verbose_api:
        logger.error(
            "http_operation_failed",
            operation=operation,
            status_code=response.status_code,
            response_text=response.text,
        )
    else:
        logger.error(
            "http_operation_failed_compact",
            operation=operation,
            status_code=response.status_code,
            response_preview=_truncate_error_text(response.text),
            verbose_hint="use ORBITAL_VERBOSE_API=true for full response",
        )


def _json_object(response: httpx.Response, operation: str) -> dict[str, Any]:
    """Decode a response body that must be a JSON object.

    Raises:
        ProtocolError: If the body is empty, not JSON, or not an object

    """
    if not response.content:
        raise ProtocolError(
            f"{operation}: server returned no data",
            status_code=response.status_code,
        )
    try:
        data = response.json()
    except ValueError as e:
        raise ProtocolError(
            f"{operation}: server returned a non-JSON response",
            status_code=response.status_code,
        ) from e
    if not isinstance(data, dict):
        raise ProtocolError(
            f"{operation}: unexpected response shape",
            status_code=response.status_code,
        )
    return data


class DeviceAuthorizationClient:
    """Client for the device authorization grant endpoints.

    Supports connection pooling by reusing an httpx.AsyncClient across requests.
    A client passed in by the caller is never closed here.
    """

    def __init__(
        self,
        config: AuthSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize device authorization client.

        Args:
            config: Auth configuration, uses default if not provided
            http_client: Optional shared httpx client for connection pooling

        """
        self.config = config or AuthSettings()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self.config.request_timeout
        )

    async def __aenter__(self) -> "DeviceAuthorizationClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.config.auth_base_url}/{path.lstrip('/')}"

    def _get_common_headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to NetworkError."""
        try:
            return await self._client.request(
                method,
                self._url(path),
                json=json,
                params=params,
                headers=self._get_common_headers(access_token),
                timeout=self.config.request_timeout,
            )
        except httpx.HTTPError as e:
            logger.warning(
                "auth_server_unreachable",
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise NetworkError(f"Network error: {e}") from e

    @staticmethod
    def _error_message(data: dict[str, Any], fallback: str) -> str:
        return str(
            data.get("error_description")
            or data.get("message")
            or data.get("error")
            or fallback
        )

    async def request_device_code(
        self,
        client_id: str | None = None,
        scope: str | None = None,
    ) -> DeviceGrant:
        """Request a device code and user code.

        Args:
            client_id: OAuth client ID, defaults to the configured one
            scope: Space separated scopes, defaults to the configured ones

        Returns:
            The device grant to display and poll with

        Raises:
            ProtocolError: If the server returns no data or an error payload
            NetworkError: If the server cannot be reached

        """
        payload = {
            "client_id": client_id or self.config.client_id,
            "scope": scope or self.config.scope,
        }
        response = await self._send("POST", "/device/code", json=payload)

        if response.status_code != 200:
            _log_http_error_compact("Device code request", response)
            try:
                data = _json_object(response, "Device code request")
            except ProtocolError:
                data = {}
            raise ProtocolError(
                "Failed to request device authorization: "
                + self._error_message(data, f"HTTP {response.status_code}"),
                error_code=data.get("error"),
                status_code=response.status_code,
            )

        data = _json_object(response, "Device code request")
        if "error" in data:
            raise ProtocolError(
                "Failed to request device authorization: "
                + self._error_message(data, "unknown error"),
                error_code=data.get("error"),
                status_code=response.status_code,
            )

        try:
            grant = DeviceGrant.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(
                f"Device code response is missing required fields: {e.error_count()} error(s)",
                status_code=response.status_code,
            ) from e

        logger.info(
            "device_code_requested",
            user_code=grant.user_code,
            expires_in=grant.expires_in,
            interval=grant.interval,
        )
        return grant

    async def poll_token(
        self,
        device_code: str,
        client_id: str | None = None,
    ) -> TokenResponse | TokenErrorResponse:
        """Ask the token endpoint once whether the device was authorized.

        Pending, slow-down, denial and expiry come back as TokenErrorResponse;
        interpreting them is the poller's job.

        Raises:
            ProtocolError: If the response is neither a token nor an error
            NetworkError: If the server cannot be reached

        """
        payload = {
            "grant_type": DEVICE_CODE_GRANT_TYPE,
            "device_code": device_code,
            "client_id": client_id or self.config.client_id,
        }
        response = await self._send("POST", "/device/token", json=payload)
        data = _json_object(response, "Token request")

        if data.get("access_token"):
            try:
                return TokenResponse.model_validate(data)
            except ValidationError as e:
                raise ProtocolError(
                    "Token response has an invalid shape",
                    status_code=response.status_code,
                ) from e

        if isinstance(data.get("error"), str):
            return TokenErrorResponse.model_validate(data)

        _log_http_error_compact("Token request", response)
        raise ProtocolError(
            "Token endpoint returned neither a token nor an error",
            status_code=response.status_code,
        )

    async def verify_user_code(self, user_code: str) -> dict[str, Any]:
        """Look up a pending device request by its user code.

        Raises:
            ProtocolError: If the code is unknown or the response is malformed
            NetworkError: If the server cannot be reached

        """
        response = await self._send(
            "GET", "/device", params={"user_code": user_code}
        )
        data = _json_object(response, "User code verification")
        if response.status_code != 200:
            raise ProtocolError(
                self._error_message(data, "Invalid user code"),
                error_code=data.get("error"),
                status_code=response.status_code,
            )
        return data

    async def approve(self, user_code: str, access_token: str) -> None:
        """Approve a pending device request as the signed-in user."""
        await self._decide("approve", user_code, access_token)

    async def deny(self, user_code: str, access_token: str) -> None:
        """Deny a pending device request as the signed-in user."""
        await self._decide("deny", user_code, access_token)

    async def _decide(self, action: str, user_code: str, access_token: str) -> None:
        response = await self._send(
            "POST",
            f"/device/{action}",
            json={"userCode": user_code},
            access_token=access_token,
        )
        if response.status_code == 401:
            raise NotAuthenticatedError(
                "The server rejected the stored credential. Please login again."
            )
        if response.status_code != 200:
            _log_http_error_compact(f"Device {action}", response)
            try:
                data = _json_object(response, f"Device {action}")
            except ProtocolError:
                data = {}
            raise ProtocolError(
                f"Failed to {action} device: "
                + self._error_message(data, f"HTTP {response.status_code}"),
                error_code=data.get("error"),
                status_code=response.status_code,
            )
        logger.info("device_request_decided", action=action, user_code=user_code)
