import re
from pydantic import BaseModel, field_validator
from typing import Optional, Union, Dict, Literal
from datetime import date
from .quote_record import Address, EstimationMethod
from .pricing_engine import HOURLY

PricingModel = Literal["hourly", "flat"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def format_mobile(digits: str) -> str:
    """0412345678 -> 0412 345 678"""
    return f"{digits[:4]} {digits[4:7]} {digits[7:]}"


class MethodRequest(BaseModel):
    method: EstimationMethod

class ItemQuantityRequest(BaseModel):
    item_code: str
    quantity: int

    @field_validator("item_code")
    @classmethod
    def _item_code(cls, value):
        return value.strip().upper()

class PresetsRequest(BaseModel):
    counts: Dict[str, int]  # {preset_key: count}

class VolumeRequest(BaseModel):
    # Raw input; anything non-numeric keeps the previous volume
    volume: Optional[Union[float, str]] = None

class LocationsRequest(BaseModel):
    origin: Address
    destination: Address
    move_date: Optional[date] = None
    move_time: Optional[str] = None
    flexible_schedule: Optional[bool] = None

class ScheduleRequest(BaseModel):
    flexible_schedule: Optional[bool] = None
    move_date: Optional[date] = None
    move_time: Optional[str] = None

class AccessNotesRequest(BaseModel):
    notes: Optional[str] = None

class ContactRequest(BaseModel):
    name: str
    email: str
    phone: str
    pricing_model: PricingModel = HOURLY
    send_email: bool = True

    @field_validator("name")
    @classmethod
    def _name(cls, value):
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Please enter your full name")
        return value

    @field_validator("email")
    @classmethod
    def _email(cls, value):
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("phone")
    @classmethod
    def _phone(cls, value):
        digits = re.sub(r"\D", "", value)
        if len(digits) != 10 or not digits.startswith("04"):
            raise ValueError("Please enter a valid Australian mobile number (04XX XXX XXX)")
        return format_mobile(digits)

class EmailRequest(BaseModel):
    pricing_model: PricingModel = HOURLY
    trigger: str = "manual-resend"

class AcceptRequest(BaseModel):
    pricing_model: PricingModel = HOURLY
