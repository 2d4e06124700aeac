from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.integrations.contracts.pricing import Gender, PropertyType, QuoteParameters


class UpstreamError(Exception):
    """Non-2xx answer from the upstream API, carried unchanged to the caller."""

    def __init__(self, status_code: int, payload: Any = None) -> None:
        super().__init__(f"Upstream responded with status {status_code}")
        self.status_code = status_code
        self.payload = payload if payload is not None else {}


class QuoteParametersError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class QuoteRequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bank_id: str = Field(alias="bankId", min_length=1)
    company_id: str = Field(alias="companyId", min_length=1)
    credit_sum: Decimal = Field(alias="creditSum", ge=0)
    property: bool = False
    life: bool = False
    title: bool = False
    property_type: Optional[PropertyType] = Field(default=None, alias="propertyType")
    wooden_floor: bool = Field(default=False, alias="woodenFloor")
    gender: Optional[Gender] = None
    age: Optional[int] = Field(default=None, ge=0)


def normalize_quote_parameters(raw: Any) -> QuoteParameters:
    if not isinstance(raw, dict):
        raise QuoteParametersError("Quote request body must be a JSON object.")
    try:
        model = QuoteRequestModel(**raw)
    except ValidationError as exc:
        raise QuoteParametersError(f"Quote request validation failed: {exc}", payload=raw) from exc

    if model.property and model.property_type is None:
        raise QuoteParametersError("propertyType is required when property cover is requested.", payload=raw)
    if model.life and (model.gender is None or model.age is None):
        raise QuoteParametersError("gender and age are required when life cover is requested.", payload=raw)

    return QuoteParameters(
        bank_id=model.bank_id,
        company_id=model.company_id,
        credit_sum=model.credit_sum,
        property=model.property,
        life=model.life,
        title=model.title,
        property_type=model.property_type,
        wooden_floor=model.wooden_floor,
        gender=model.gender,
        age=model.age,
    )


def error_messages(payload: Any) -> List[str]:
    """Message list of an upstream error body, in upstream order."""
    if not isinstance(payload, dict):
        return [payload] if isinstance(payload, str) and payload else []

    for key in ("errors", "messages"):
        entries = payload.get(key)
        if isinstance(entries, list):
            return [_message_text(entry) for entry in entries if _message_text(entry)]

    message = payload.get("message")
    if isinstance(message, str) and message:
        return [message]
    return []


def _message_text(entry: Any) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        text = entry.get("message") or entry.get("text") or ""
        return str(text)
    return ""
