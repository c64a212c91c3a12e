"""
Stage transitions for the quote pipeline.

    inventory -> locations -> access -> final -> accepted

Each function takes the current QuoteRecord, applies one customer action and
returns the same record. None of these touch storage or the network — the
routers load the record, call in here, and save. The route itself is
computed by RouteCostEstimator before capture_locations() is called.

Rules enforced here:
- an accepted record is read-only (QuoteLocked)
- the estimation method can change only before the customer first leaves
  the inventory stage; changing it resets the derived volume fields
- "continue" is gated on each stage's required fields (StageNotReady)
"""

import logging
from datetime import datetime

from .catalog import Catalog, get_catalog
from .crew_sizer import recommend_crew_size
from .errors import EstimationMethodLocked, QuoteLocked, StageNotReady
from .friction import FrictionAdjuster
from .quote_output import generate_quote_reference
from .quote_record import (
    STAGE_ORDER,
    Address,
    Customer,
    EstimationMethod,
    ItemDetail,
    LoadingTime,
    QuoteRecord,
    Route,
    Stage,
    VolumeEntry,
)
from .route_estimator import is_weekend
from .time_estimator import inventory_handling_time, volume_handling_time
from .volume_estimator import (
    DEFAULT_MANUAL_VOLUME,
    apply_presets,
    parse_manual_volume,
    selected_items_details,
    set_quantity,
    specialty_surcharges,
    total_items,
    total_volume,
)

logger = logging.getLogger(__name__)


def new_record(session_id: str = None) -> QuoteRecord:
    return QuoteRecord(session_id=session_id)


def _touch(record: QuoteRecord) -> QuoteRecord:
    record.updated_at = datetime.utcnow()
    return record


def _stage_index(stage: Stage) -> int:
    return STAGE_ORDER.index(Stage(stage))


def _ensure_editable(record: QuoteRecord):
    if record.is_locked:
        raise QuoteLocked(record.quote_reference)


def _ensure_stage(record: QuoteRecord, *stages: Stage):
    if record.stage not in stages:
        raise StageNotReady(
            stages[0].value,
            [f"current stage is '{record.stage.value}'"],
        )


# --- Stage 1: volume ---

def _reset_volume_fields(record: QuoteRecord):
    record.selected_items = {}
    record.items_details = []
    record.total_items = 0
    record.total_volume = 0.0
    record.volume_entry = None
    record.loading_time = LoadingTime()
    record.crew_size = recommend_crew_size(0)
    record.specialty_surcharges = 0.0


def refresh_estimates(record: QuoteRecord, catalog: Catalog = None) -> QuoteRecord:
    """Recompute every derived stage-1 field from the current inputs."""
    catalog = catalog or get_catalog()

    if record.estimation_method == EstimationMethod.INVENTORY:
        selection = record.selected_items
        record.items_details = [ItemDetail(**row) for row in selected_items_details(selection, catalog)]
        record.total_items = total_items(selection)
        record.total_volume = total_volume(selection, catalog)
        record.loading_time = LoadingTime(**inventory_handling_time(selection, catalog))
        record.specialty_surcharges = specialty_surcharges(selection, catalog)
        record.volume_entry = None
    elif record.estimation_method == EstimationMethod.VOLUME:
        volume = record.volume_entry.manual_volume if record.volume_entry else 0.0
        record.items_details = []
        record.total_items = 0
        record.total_volume = volume
        record.loading_time = LoadingTime(**volume_handling_time(volume))
        record.specialty_surcharges = 0.0
    else:
        _reset_volume_fields(record)

    record.crew_size = recommend_crew_size(record.total_volume)

    # Keep downstream friction numbers in step when the customer goes back
    if record.friction_calculations is not None and record.route is not None:
        FrictionAdjuster().apply(record, record.friction_notes)

    return _touch(record)


def choose_method(record: QuoteRecord, method, catalog: Catalog = None) -> QuoteRecord:
    _ensure_editable(record)
    method = EstimationMethod(method)
    if record.estimation_method == method:
        return record
    if record.estimation_method is not None and record.step > 1:
        raise EstimationMethodLocked(record.estimation_method.value)
    _ensure_stage(record, Stage.INVENTORY)

    logger.info("Session %s: estimation method -> %s", record.session_id, method.value)
    _reset_volume_fields(record)
    record.estimation_method = method
    if method == EstimationMethod.VOLUME:
        record.volume_entry = VolumeEntry(manual_volume=DEFAULT_MANUAL_VOLUME)
    return refresh_estimates(record, catalog)


def set_item_quantity(record: QuoteRecord, item_code: str, quantity: int,
                      catalog: Catalog = None) -> QuoteRecord:
    _ensure_editable(record)
    _ensure_stage(record, Stage.INVENTORY)
    if record.estimation_method != EstimationMethod.INVENTORY:
        choose_method(record, EstimationMethod.INVENTORY, catalog)
    record.selected_items = set_quantity(record.selected_items, item_code, quantity)
    return refresh_estimates(record, catalog)


def apply_room_presets(record: QuoteRecord, counts: dict, catalog: Catalog = None) -> QuoteRecord:
    _ensure_editable(record)
    _ensure_stage(record, Stage.INVENTORY)
    if record.estimation_method != EstimationMethod.INVENTORY:
        choose_method(record, EstimationMethod.INVENTORY, catalog)
    record.selected_items = apply_presets(record.selected_items, counts)
    return refresh_estimates(record, catalog)


def set_manual_volume(record: QuoteRecord, raw, catalog: Catalog = None) -> QuoteRecord:
    """Non-numeric input leaves the previous volume in place."""
    _ensure_editable(record)
    _ensure_stage(record, Stage.INVENTORY)
    if record.estimation_method != EstimationMethod.VOLUME:
        choose_method(record, EstimationMethod.VOLUME, catalog)

    previous = record.volume_entry.manual_volume if record.volume_entry else None
    volume = parse_manual_volume(raw, previous)
    if volume is None:
        return record
    record.volume_entry = VolumeEntry(manual_volume=volume)
    return refresh_estimates(record, catalog)


# --- Stage 2: locations & schedule ---

def capture_locations(record: QuoteRecord, origin: Address, destination: Address,
                      route: Route, move_date=None, move_time: str = None,
                      flexible_schedule: bool = None) -> QuoteRecord:
    """
    Store addresses, schedule and a freshly computed route.

    Called once per completed route lookup — if two lookups overlap, whichever
    finishes last overwrites the other.
    """
    _ensure_editable(record)
    _ensure_stage(record, Stage.LOCATIONS, Stage.ACCESS, Stage.FINAL)

    record.origin = origin
    record.destination = destination
    record.route = route
    if move_date is not None:
        record.move_date = move_date
    record.move_time = move_time or None
    record.is_weekend = is_weekend(record.move_date)
    if flexible_schedule is not None:
        record.flexible_schedule = bool(flexible_schedule)

    if record.friction_calculations is not None:
        FrictionAdjuster().apply(record, record.friction_notes)
    return _touch(record)


def update_schedule(record: QuoteRecord, flexible_schedule: bool = None,
                    move_date=None, move_time: str = None) -> QuoteRecord:
    _ensure_editable(record)
    _ensure_stage(record, Stage.LOCATIONS, Stage.ACCESS, Stage.FINAL)
    if flexible_schedule is not None:
        record.flexible_schedule = bool(flexible_schedule)
    if move_date is not None:
        record.move_date = move_date
        record.is_weekend = is_weekend(move_date)
    if move_time is not None:
        record.move_time = move_time or None
    return _touch(record)


# --- Stage 3: access notes ---

def capture_access_notes(record: QuoteRecord, notes: str = None,
                         adjuster: FrictionAdjuster = None) -> QuoteRecord:
    _ensure_editable(record)
    _ensure_stage(record, Stage.ACCESS, Stage.FINAL)
    (adjuster or FrictionAdjuster()).apply(record, notes)
    return _touch(record)


# --- Stage 4: final ---

def attach_customer(record: QuoteRecord, name: str, email: str, phone: str) -> QuoteRecord:
    _ensure_editable(record)
    _ensure_stage(record, Stage.FINAL)
    record.customer = Customer(
        name=name.strip(),
        email=email.strip(),
        phone=phone.strip(),
        submitted_at=datetime.utcnow(),
    )
    return _touch(record)


def accept(record: QuoteRecord, pricing_model: str, snapshot: dict) -> QuoteRecord:
    """Freeze the record. snapshot is the exported quote the customer accepted."""
    _ensure_editable(record)
    _ensure_stage(record, Stage.FINAL)
    if not record.customer or not record.customer.email:
        raise StageNotReady(Stage.FINAL.value, ["customer.email"])

    record.accepted_pricing_model = pricing_model
    record.accepted_quote = snapshot
    record.accepted_at = datetime.utcnow()
    record.stage = Stage.ACCEPTED
    record.step = _stage_index(Stage.ACCEPTED) + 1
    logger.info("Quote %s accepted (%s)", record.quote_reference, pricing_model)
    return _touch(record)


# --- Gating ---

def missing_requirements(record: QuoteRecord, stage: Stage = None) -> list[str]:
    """What still blocks "continue" for a stage (default: the current one)."""
    stage = Stage(stage or record.stage)
    missing = []

    if stage == Stage.INVENTORY:
        if record.estimation_method is None:
            missing.append("estimation_method")
        elif record.estimation_method == EstimationMethod.INVENTORY and record.total_items <= 0:
            missing.append("selected_items")
        elif record.estimation_method == EstimationMethod.VOLUME and not record.total_volume > 0:
            missing.append("total_volume")

    elif stage == Stage.LOCATIONS:
        for label, address in (("origin", record.origin), ("destination", record.destination)):
            if address is None:
                missing.append(label)
            else:
                missing.extend(f"{label}.{part}" for part in address.missing_parts())
        if record.move_date is None:
            missing.append("move_date")
        if record.route is None:
            missing.append("route")

    elif stage == Stage.ACCESS:
        if record.route is None:
            missing.append("route")

    elif stage == Stage.FINAL:
        if not record.customer or not record.customer.email:
            missing.append("customer.email")

    return missing


def can_continue(record: QuoteRecord) -> bool:
    if record.stage in (Stage.FINAL, Stage.ACCEPTED):
        return False
    return not missing_requirements(record)


def advance(record: QuoteRecord, reference_factory=None) -> QuoteRecord:
    """
    Move to the next stage. Entering the final stage issues the quote
    reference (once — returning to the final stage keeps it).
    """
    _ensure_editable(record)
    if record.stage == Stage.FINAL:
        raise StageNotReady(Stage.FINAL.value, ["accept the quote to finish"])

    missing = missing_requirements(record)
    if missing:
        raise StageNotReady(record.stage.value, missing)

    if record.stage == Stage.ACCESS and record.friction_calculations is None:
        FrictionAdjuster().apply(record, record.friction_notes)

    next_stage = STAGE_ORDER[_stage_index(record.stage) + 1]
    record.stage = next_stage
    record.step = max(record.step, _stage_index(next_stage) + 1)

    if next_stage == Stage.FINAL and not record.quote_reference:
        record.quote_reference = (reference_factory or generate_quote_reference)()

    return _touch(record)


def return_to(record: QuoteRecord, stage) -> QuoteRecord:
    """Progress-bar navigation — only back to stages already completed."""
    _ensure_editable(record)
    stage = Stage(stage)
    if _stage_index(stage) > _stage_index(record.stage):
        raise StageNotReady(stage.value, [f"complete '{record.stage.value}' first"])
    record.stage = stage
    return _touch(record)
