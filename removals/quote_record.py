"""
QuoteRecord — the single document threaded through every pipeline stage.

Stored as JSON (one row per customer session). Each stage reads the record
produced by the previous stage and adds fields; nothing is ever deleted.
normalize_record() is the only place optional fields get defaulted, so
downstream readers (pricing, output) never need ad hoc fallbacks.
"""

import enum
import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class EstimationMethod(str, enum.Enum):
    INVENTORY = "inventory"
    VOLUME = "volume"


class Stage(str, enum.Enum):
    INVENTORY = "inventory"
    LOCATIONS = "locations"
    ACCESS = "access"
    FINAL = "final"
    ACCEPTED = "accepted"


STAGE_ORDER = [Stage.INVENTORY, Stage.LOCATIONS, Stage.ACCESS, Stage.FINAL, Stage.ACCEPTED]


def sanitize_postcode(value) -> str:
    """Digits only, at most four — the same filter the postcode input applies."""
    if value is None:
        return ""
    return re.sub(r"\D", "", str(value))[:4]


class LoadingTime(BaseModel):
    loading_hours: float = 0.0
    unloading_hours: float = 0.0
    total_handling_hours: float = 0.0


class VolumeEntry(BaseModel):
    manual_volume: float
    source: str = "customer-direct"


class ItemDetail(BaseModel):
    item_code: str
    name: str
    category: str = ""
    quantity: int
    volume_m3: float
    total_volume: float
    surcharge: float = 0.0
    total_surcharge: float = 0.0
    is_specialty: bool = False


class Address(BaseModel):
    address: str = ""
    suburb: str = ""
    postcode: str = ""
    state: str = ""

    @field_validator("postcode", mode="before")
    @classmethod
    def _filter_postcode(cls, value):
        return sanitize_postcode(value)

    @field_validator("address", "suburb", "state", mode="before")
    @classmethod
    def _strip(cls, value):
        return str(value or "").strip()

    @property
    def full_address(self) -> str:
        return f"{self.address}, {self.suburb} {self.state} {self.postcode}, Australia"

    def missing_parts(self) -> list[str]:
        missing = [name for name in ("address", "suburb", "state") if not getattr(self, name)]
        if len(self.postcode) != 4:
            missing.append("postcode")
        return missing


class Route(BaseModel):
    distance_km: int
    duration_minutes: int
    estimated_toll_cost: float = 0.0
    traffic_conditions: str = "estimated"
    calculated_at: datetime = Field(default_factory=datetime.utcnow)
    warning: Optional[str] = None


class FrictionCalculations(BaseModel):
    time_multiplier: float = 1.0
    adjusted_handling_hours: float = 0.0
    friction_delay: float = 0.0
    total_estimated_hours: float = 0.0


class Surcharges(BaseModel):
    stairs: float = 0.0
    access: float = 0.0
    total_friction: float = 0.0
    specialty_items: float = 0.0


class Customer(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    submitted_at: Optional[datetime] = None


class QuoteRecord(BaseModel):
    session_id: Optional[str] = None
    stage: Stage = Stage.INVENTORY
    step: int = 1

    # Stage 1 — volume
    estimation_method: Optional[EstimationMethod] = None
    selected_items: dict[str, int] = Field(default_factory=dict)
    items_details: list[ItemDetail] = Field(default_factory=list)
    total_items: int = 0
    total_volume: float = 0.0
    volume_entry: Optional[VolumeEntry] = None
    loading_time: LoadingTime = Field(default_factory=LoadingTime)
    crew_size: int = 2
    specialty_surcharges: float = 0.0

    # Stage 2 — locations & schedule
    move_date: Optional[date] = None
    move_time: Optional[str] = None
    is_weekend: bool = False
    origin: Optional[Address] = None
    destination: Optional[Address] = None
    route: Optional[Route] = None
    flexible_schedule: bool = False

    # Stage 3 — access notes
    friction_notes: str = ""
    friction_calculations: Optional[FrictionCalculations] = None
    surcharges: Optional[Surcharges] = None

    # Stage 4 — final
    customer: Optional[Customer] = None
    quote_reference: Optional[str] = None
    accepted_at: Optional[datetime] = None
    accepted_pricing_model: Optional[str] = None
    accepted_quote: Optional[dict] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_locked(self) -> bool:
        return self.stage == Stage.ACCEPTED

    def to_json_dict(self) -> dict:
        """JSON-safe dict for the persisted document."""
        return self.model_dump(mode="json")

    @classmethod
    def from_json_dict(cls, data: dict) -> "QuoteRecord":
        return cls.model_validate(data)


def travel_hours(record: QuoteRecord) -> float:
    if not record.route:
        return 0.0
    return (record.route.duration_minutes or 0) / 60


def normalize_record(record: QuoteRecord) -> QuoteRecord:
    """
    Return a fully defaulted copy of the record.

    Friction fields default to the neutral adjustment (multiplier 1, no delay,
    no friction surcharge) so pricing can run on a record that skipped or has
    not yet reached the access stage.
    """
    normalized = record.model_copy(deep=True)
    handling = normalized.loading_time.total_handling_hours

    if normalized.friction_calculations is None:
        normalized.friction_calculations = FrictionCalculations(
            time_multiplier=1.0,
            adjusted_handling_hours=handling,
            friction_delay=0.0,
            total_estimated_hours=handling + travel_hours(normalized),
        )
    if normalized.surcharges is None:
        normalized.surcharges = Surcharges(specialty_items=normalized.specialty_surcharges)
    if normalized.friction_notes is None:
        normalized.friction_notes = ""
    if normalized.customer is None:
        normalized.customer = Customer()
    return normalized
