"""Pydantic models for source record validation."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


def _blank_to_zero(value: Any) -> Any:
    """Missing numeric fields count as 0; anything else is left to pydantic."""
    if value is None or value == "":
        return 0
    return value


def _int_to_text(value: Any) -> Any:
    """Campaign IDs arrive as ints from some exports."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class SourceRow(BaseModel):
    """Common base: extra fields pass through untouched."""

    model_config = ConfigDict(extra="allow")


class AdMetricRow(SourceRow):
    """Single day of paid social (Meta) metrics."""

    date: Optional[str] = None
    campaign_id: Optional[str] = None
    spend: float = 0
    impressions: float = 0
    clicks: float = 0
    conversions: float = 0

    @field_validator("campaign_id", mode="before")
    @classmethod
    def _campaign_text(cls, value: Any) -> Any:
        return _int_to_text(value)

    @field_validator("spend", "impressions", "clicks", "conversions", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        return _blank_to_zero(value)


class SmsMetricRow(SourceRow):
    """Single SMS send with delivery and response counts."""

    send_date: Optional[str] = None
    cost: float = 0
    messages_sent: float = 0
    messages_delivered: float = 0
    clicks: float = 0
    conversions: float = 0

    @field_validator(
        "cost",
        "messages_sent",
        "messages_delivered",
        "clicks",
        "conversions",
        mode="before",
    )
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        return _blank_to_zero(value)


class TransactionRow(SourceRow):
    """Single donation."""

    transaction_date: Optional[str] = None
    amount: float = 0
    fee: float = 0
    is_recurring: bool = False
    refcode: Optional[str] = None

    @field_validator("amount", "fee", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    @field_validator("is_recurring", mode="before")
    @classmethod
    def _recurring(cls, value: Any) -> Any:
        return False if value is None or value == "" else value


class AttributionRow(SourceRow):
    """Pre-split attribution totals for one (platform, campaign) record."""

    platform: str
    campaign_id: str
    first_touch_attribution: float = 0
    last_touch_attribution: float = 0
    linear_attribution: float = 0
    position_based_attribution: float = 0
    time_decay_attribution: float = 0

    @field_validator("campaign_id", mode="before")
    @classmethod
    def _campaign_text(cls, value: Any) -> Any:
        return _int_to_text(value)

    @field_validator(
        "first_touch_attribution",
        "last_touch_attribution",
        "linear_attribution",
        "position_based_attribution",
        "time_decay_attribution",
        mode="before",
    )
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        return _blank_to_zero(value)
