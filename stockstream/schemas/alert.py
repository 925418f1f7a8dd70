"""
Wire contract for low-stock alerts.

Producer (AlertPublisher) and consumer (LowStockAlertConsumer) both go through
this class, so the message body cannot drift between the two sides:

    {"ProductId": 7, "StockLevel": 9, "Threshold": 10, "AlertTime": "2026-10-18T09:30:00Z"}
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LowStockAlertMessage(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    product_id: int = Field(alias="ProductId")
    stock_level: int = Field(alias="StockLevel")
    threshold: int = Field(alias="Threshold")
    alert_time: datetime = Field(alias="AlertTime")

    @field_validator("alert_time")
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @classmethod
    def create(cls, product_id: int, stock_level: int, threshold: int) -> "LowStockAlertMessage":
        return cls(
            product_id=product_id,
            stock_level=stock_level,
            threshold=threshold,
            alert_time=datetime.now(timezone.utc),
        )

    def to_body(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_body(cls, body: bytes) -> "LowStockAlertMessage":
        return cls.model_validate_json(body)
