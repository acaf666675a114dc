"""Payment notification and job Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MidtransNotification(BaseModel):
    """Midtrans HTTP notification body.

    Midtrans sends ``status_code`` and ``gross_amount`` as strings, but some
    channels and test tools send numbers; both are kept as text because the
    signature is computed over the exact characters.
    """

    model_config = ConfigDict(extra="allow")

    order_id: str = Field(..., min_length=1)
    status_code: str = Field(..., min_length=1)
    gross_amount: str = Field(..., min_length=1)
    signature_key: str | None = None
    transaction_status: str | None = None
    fraud_status: str | None = None
    transaction_time: str | None = None
    payment_type: str | None = None
    status_message: str | None = None

    @field_validator("order_id", "status_code", "gross_amount", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return v
        if isinstance(v, (int, float)):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v


class WebhookAck(BaseModel):
    """Acknowledgment returned to the provider."""

    status: str = "ok"
    outcome: str | None = None
    message: str | None = None


class SweepReportResponse(BaseModel):
    """Schema for an expiry sweep run."""

    processed: int
    updated: int
    failed: int
    errors: list[str]
    run_time: datetime
