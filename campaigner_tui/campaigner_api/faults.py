# campaigner_tui/campaigner_api/faults.py
# Description: Turns raw transport/API failures into a small closed taxonomy of network faults.
#
# Imports
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional
#
# 3rd-party Libraries
import httpx
#
# Local Imports
from .exceptions import (
    APIConnectionError, APIResponseError, APITimeoutError, AuthenticationError, CampaignerAPIError
)
#
########################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

ConnectivityProbe = Callable[[], bool]

_TRANSPORT_ERRORS = (httpx.TransportError, APIConnectionError, ConnectionError)
_TIMEOUT_ERRORS = (asyncio.TimeoutError, httpx.TimeoutException, APITimeoutError)


class FaultKind(str, enum.Enum):
    OFFLINE = "offline"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    UNAUTHORIZED = "unauthorized"
    UNKNOWN = "unknown"


# Faults a background refresh may simply retry on its next scheduled tick.
SILENTLY_RETRYABLE = frozenset({
    FaultKind.OFFLINE, FaultKind.NETWORK_ERROR, FaultKind.TIMEOUT, FaultKind.SERVER_ERROR,
})

_USER_MESSAGES = {
    FaultKind.OFFLINE: "You appear to be offline. Check your connection and try again.",
    FaultKind.NETWORK_ERROR: "Could not reach the server. Please try again in a moment.",
    FaultKind.TIMEOUT: "The server took too long to respond. Please try again.",
    FaultKind.SERVER_ERROR: "The server ran into a problem. Please try again later.",
    FaultKind.UNAUTHORIZED: "Your session has expired. Please sign in again.",
}


@dataclass(frozen=True)
class NetworkFault:
    kind: FaultKind
    message: str = ""
    status_code: Optional[int] = None

    @property
    def retry_silently(self) -> bool:
        return self.kind in SILENTLY_RETRYABLE

    @property
    def requires_reauthentication(self) -> bool:
        return self.kind is FaultKind.UNAUTHORIZED

    def user_message(self) -> str:
        """Human-readable text for toasts and status lines."""
        if self.kind is FaultKind.UNKNOWN:
            detail = self.message or "Unexpected error"
            if self.status_code is not None:
                return f"Request failed ({self.status_code}): {detail}"
            return f"Request failed: {detail}"
        text = _USER_MESSAGES[self.kind]
        if self.kind is FaultKind.SERVER_ERROR and self.status_code is not None:
            text = f"{text} (HTTP {self.status_code})"
        return text

    def __str__(self) -> str:
        status = f" [{self.status_code}]" if self.status_code is not None else ""
        return f"{self.kind.value}{status}: {self.message}"


def default_connectivity_probe() -> bool:
    """The terminal host has no navigator.onLine equivalent; assume online unless told otherwise."""
    return True


def _status_code_of(exc: BaseException) -> Optional[int]:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def classify_exception(exc: BaseException, is_online: Optional[ConnectivityProbe] = None) -> NetworkFault:
    """
    Classify a failed network operation.

    Order matters: offline first, then transport failures before any response,
    then elapsed deadlines, then HTTP status families. The original status code
    is kept whenever the server responded at all.
    """
    message = str(exc) or exc.__class__.__name__
    status_code = _status_code_of(exc)
    probe = is_online or default_connectivity_probe

    try:
        online = probe()
    except Exception as probe_error:
        logger.warning(f"Connectivity probe failed ({probe_error}); assuming online.")
        online = True
    if not online:
        return NetworkFault(FaultKind.OFFLINE, message, status_code)

    # Timeouts subclass the transport errors in both httpx and our hierarchy.
    timed_out = isinstance(exc, _TIMEOUT_ERRORS)
    if isinstance(exc, _TRANSPORT_ERRORS) and not timed_out:
        return NetworkFault(FaultKind.NETWORK_ERROR, message, status_code)

    if timed_out:
        return NetworkFault(FaultKind.TIMEOUT, message, status_code)

    if status_code is not None and 500 <= status_code <= 599:
        return NetworkFault(FaultKind.SERVER_ERROR, message, status_code)

    if isinstance(exc, AuthenticationError) or status_code == 401:
        return NetworkFault(FaultKind.UNAUTHORIZED, message, status_code or 401)

    if not isinstance(exc, (CampaignerAPIError, httpx.HTTPError, APIResponseError)):
        logger.debug(f"Classifying non-network exception {type(exc).__name__} as UNKNOWN")
    return NetworkFault(FaultKind.UNKNOWN, message, status_code)

#
# End of faults.py
########################################################################################################################
