# campaigner_tui/campaigner_api/exceptions.py
#
#
#######################################################################################################################
#
# Functions:
from typing import Optional


class CampaignerAPIError(Exception):
    """Base exception for campaigner_api errors."""
    status_code: Optional[int] = None

class APIConnectionError(CampaignerAPIError):
    """Raised when the transport fails before any response arrives (refused, DNS, reset)."""
    pass

class APITimeoutError(APIConnectionError):
    """Raised when the caller-side request deadline elapses."""
    pass

class APIRequestError(CampaignerAPIError):
    """Raised for errors in constructing or sending the request (e.g., bad data)."""
    pass

class APIResponseError(CampaignerAPIError):
    """Raised for non-2xx responses or issues parsing the response."""
    def __init__(self, status_code: int, message: str, response_data: dict = None):
        super().__init__(f"API Error {status_code}: {message}")
        self.status_code = status_code
        self.response_data = response_data or {}

class NotFoundError(APIResponseError):
    """Raised when a single record lookup returns 404."""
    def __init__(self, message: str, response_data: dict = None):
        super().__init__(404, message, response_data=response_data)

class AuthenticationError(CampaignerAPIError):
    """Raised for authentication failures (HTTP 401)."""
    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code

#
# End of campaigner_tui/campaigner_api/exceptions.py
########################################################################################################################
