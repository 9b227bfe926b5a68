# campaigner_tui/campaigner_api/__init__.py
from .client import CampaignerAPIClient, DEFAULT_ENDPOINTS
from .exceptions import (
    CampaignerAPIError, APIConnectionError, APITimeoutError, APIRequestError,
    APIResponseError, NotFoundError, AuthenticationError
)
from .faults import FaultKind, NetworkFault, classify_exception, default_connectivity_probe
from .schemas import (
    ConversationRecord, CampaignRecord, CreditUsageResponse,
    normalize_conversations, normalize_campaigns, NORMALIZERS,
    EntityType, InvalidationTarget, Record
)
from .utils import extract_collection_items, decode_token_payload, is_token_expired, get_user_id_from_token

__all__ = [
    "CampaignerAPIClient", "DEFAULT_ENDPOINTS",
    "CampaignerAPIError", "APIConnectionError", "APITimeoutError", "APIRequestError",
    "APIResponseError", "NotFoundError", "AuthenticationError",
    "FaultKind", "NetworkFault", "classify_exception", "default_connectivity_probe",
    "ConversationRecord", "CampaignRecord", "CreditUsageResponse",
    "normalize_conversations", "normalize_campaigns", "NORMALIZERS",
    "EntityType", "InvalidationTarget", "Record",
    "extract_collection_items", "decode_token_payload", "is_token_expired", "get_user_id_from_token",
]
