# campaigner_tui/campaigner_api/schemas.py
import logging
from typing import List, Optional, Dict, Any, Literal, Callable, FrozenSet

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, ValidationError, field_validator

from .utils import extract_collection_items

logger = logging.getLogger(__name__)

# Enum-like Literals
EntityType = Literal['conversations', 'campaigns']
InvalidationTarget = Literal['conversations', 'campaigns', 'dashboard', 'all']

Record = Dict[str, Any]


# --- Collection records ---
# Records are free-form: unknown fields are kept verbatim, known fields are
# normalised across the spellings the backend has used over time.
class _EntityRecord(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("id must be an integer")
        return int(value)

    @classmethod
    def alternate_spellings(cls) -> FrozenSet[str]:
        """Input keys that feed a declared field under a different name."""
        spellings = set()
        for field_name, field_info in cls.model_fields.items():
            alias = field_info.validation_alias
            if isinstance(alias, AliasChoices):
                spellings.update(choice for choice in alias.choices if choice != field_name)
        return frozenset(spellings)


class ConversationRecord(_EntityRecord):
    # Display fields are opaque; only the id (and the campaign link) may reject a record.
    title: Optional[Any] = Field(default=None, validation_alias=AliasChoices("title", "name"))
    last_message: Optional[Any] = Field(default=None, validation_alias=AliasChoices("last_message", "lastMessage"))
    updated_at: Optional[Any] = Field(default=None, validation_alias=AliasChoices("updated_at", "updatedAt"))
    created_at: Optional[Any] = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))
    has_campaign: Optional[Any] = Field(default=None, validation_alias=AliasChoices("has_campaign", "hasCampaign"))


class CampaignRecord(_EntityRecord):
    conversation_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("conversation_id", "conversationId")
    )
    title: Optional[Any] = None
    status: Optional[Any] = None
    tone: Optional[Any] = None
    created_at: Optional[Any] = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))
    leads: Optional[Any] = None


def _normalize_records(raw_items: List[Any], model: type) -> List[Record]:
    records: List[Record] = []
    spellings = model.alternate_spellings()
    for idx, item in enumerate(raw_items):
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-dictionary {model.__name__} payload item: {item!r}")
            continue
        data = dict(item)
        if data.get("id") is None:
            data["id"] = idx + 1
        try:
            parsed = model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Dropping {model.__name__} item that failed validation: {e.errors()[0].get('msg', e)}")
            continue
        record = parsed.model_dump()
        # When both spellings were sent, the unused one lands in the extras.
        for spelling in spellings:
            record.pop(spelling, None)
        records.append(record)
    return records


def normalize_conversations(payload: Any) -> List[Record]:
    """Normalise a conversations collection payload (bare list, {items: [...]}, or a bare string)."""
    if isinstance(payload, str):
        return [{"id": 1, "title": payload, "last_message": None, "updated_at": None,
                 "created_at": None, "has_campaign": None}]
    return _normalize_records(extract_collection_items(payload), ConversationRecord)


def normalize_campaigns(payload: Any) -> List[Record]:
    """Normalise a campaigns collection payload (bare list or {items: [...]})."""
    return _normalize_records(extract_collection_items(payload), CampaignRecord)


NORMALIZERS: Dict[str, Callable[[Any], List[Record]]] = {
    "conversations": normalize_conversations,
    "campaigns": normalize_campaigns,
}


# --- Aggregate documents ---
class CreditUsageResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    credits_remaining: Optional[float] = None
    credits_used: Optional[float] = None
    usage_percentage: Optional[float] = None

    @property
    def is_exceeded(self) -> bool:
        return self.credits_remaining is not None and self.credits_remaining <= 0

    @property
    def is_near_limit(self) -> bool:
        return self.usage_percentage is not None and 80 <= self.usage_percentage < 100
