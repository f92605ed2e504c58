"""OAuth 2.0 device authorization grant (RFC 8628)."""

from orbital_cli.auth.device.client import DeviceAuthorizationClient
from orbital_cli.auth.device.poller import DevicePoller, PollProgress


__all__ = ["DeviceAuthorizationClient", "DevicePoller", "PollProgress"]
