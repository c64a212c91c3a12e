"""
Quote Session API — drives one customer through the 4-stage pipeline.

POST  /api/quote/start              — New session, empty record
GET   /api/quote/{id}               — Current record + what blocks "continue"
POST  /api/quote/{id}/method        — Stage 1: inventory list or direct volume
PUT   /api/quote/{id}/items         — Stage 1: set one item's quantity
POST  /api/quote/{id}/presets       — Stage 1: quick-fill rooms
PUT   /api/quote/{id}/volume        — Stage 1: manual volume (m³)
POST  /api/quote/{id}/locations     — Stage 2: addresses + schedule, computes route
PATCH /api/quote/{id}/schedule      — Stage 2: flexible schedule / date / time only
POST  /api/quote/{id}/access        — Stage 3: free-text access notes
POST  /api/quote/{id}/continue      — Advance to the next stage
POST  /api/quote/{id}/return        — Go back to an earlier stage
GET   /api/quote/{id}/price         — Stage 4: hourly or flat breakdown
POST  /api/quote/{id}/contact       — Stage 4: contact details, sends the quote email
POST  /api/quote/{id}/email         — Stage 4: resend the quote email
POST  /api/quote/{id}/accept        — Stage 4: accept, record becomes read-only
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import stages
from ..catalog import get_catalog
from ..database import get_db
from ..email_sender import EmailSender
from ..errors import (
    EmailDeliveryError,
    EstimationMethodLocked,
    QuoteError,
    QuoteLocked,
    QuoteRecordNotFound,
    StageNotReady,
)
from ..pricing_engine import FLAT, HOURLY, PricingEngine
from ..quote_output import build_email_payload, export_quote_data, format_duration
from ..quote_record import QuoteRecord, Stage, normalize_record
from ..repository import SqlQuoteRepository, new_session_id
from ..route_estimator import RouteCostEstimator
from ..schemas import (
    AcceptRequest,
    AccessNotesRequest,
    ContactRequest,
    EmailRequest,
    ItemQuantityRequest,
    LocationsRequest,
    MethodRequest,
    PresetsRequest,
    ScheduleRequest,
    VolumeRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quote", tags=["quote-session"])

# Stateless — one instance serves every request
pricing = PricingEngine()

EMAIL_FAILED_NOTICE = (
    "Your quote is ready, but the email could not be delivered automatically. "
    "Please try sending it again or contact us."
)


# --- Dependencies (overridden in tests) ---

def get_route_estimator() -> RouteCostEstimator:
    return RouteCostEstimator()


def get_email_sender() -> EmailSender:
    return EmailSender()


class ReturnRequest(BaseModel):
    stage: Stage


# --- Helpers ---

def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, QuoteRecordNotFound):
        return HTTPException(
            status_code=404,
            detail={"message": str(e), "redirect_stage": e.redirect_stage},
        )
    if isinstance(e, StageNotReady):
        return HTTPException(
            status_code=400,
            detail={"message": str(e), "stage": e.stage, "missing": e.missing},
        )
    if isinstance(e, (QuoteLocked, EstimationMethodLocked)):
        return HTTPException(status_code=409, detail={"message": str(e)})
    return HTTPException(status_code=400, detail={"message": str(e)})


def _repo(db: Session, session_id: str) -> SqlQuoteRepository:
    return SqlQuoteRepository(db, session_id)


def _record_response(record: QuoteRecord) -> dict:
    return {
        "session_id": record.session_id,
        "stage": record.stage.value,
        "record": normalize_record(record).to_json_dict(),
        "missing": stages.missing_requirements(record),
        "can_continue": stages.can_continue(record),
    }


def _price(record: QuoteRecord, pricing_model: str) -> dict:
    if pricing_model not in (HOURLY, FLAT):
        raise HTTPException(
            status_code=400,
            detail={"message": f"Unknown pricing model: {pricing_model}. Available: {[HOURLY, FLAT]}"},
        )
    return pricing.calculate(record, pricing_model)


async def _send_quote_email(record: QuoteRecord, sender: EmailSender,
                            pricing_model: str, trigger: str) -> dict:
    """Email failures never block the quote — they come back as a notice."""
    costs = _price(record, pricing_model)
    payload = build_email_payload(record, costs, trigger)
    try:
        await sender.send(payload)
    except EmailDeliveryError as e:
        logger.error("Quote email failed for %s: %s", record.quote_reference, e)
        return {"email_sent": False, "notice": EMAIL_FAILED_NOTICE}
    return {"email_sent": True, "notice": f"Quote sent to {payload['to']}"}


# --- Endpoints ---

@router.post("/start")
def start_quote(db: Session = Depends(get_db)):
    session_id = new_session_id()
    record = stages.new_record(session_id)
    _repo(db, session_id).save(record)
    logger.info("Quote session started: %s", session_id)
    return _record_response(record)


@router.get("/{session_id}")
def get_quote(session_id: str, db: Session = Depends(get_db)):
    try:
        record = _repo(db, session_id).load()
    except QuoteError as e:
        raise _http_error(e)
    return _record_response(record)


@router.post("/{session_id}/method")
def choose_method(session_id: str, request: MethodRequest, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = stages.choose_method(repo.load(), request.method, get_catalog())
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    return _record_response(record)


@router.put("/{session_id}/items")
def set_item(session_id: str, request: ItemQuantityRequest, db: Session = Depends(get_db)):
    catalog = get_catalog()
    if request.item_code not in catalog:
        raise HTTPException(status_code=400, detail={"message": f"Unknown item: {request.item_code}"})

    repo = _repo(db, session_id)
    try:
        record = stages.set_item_quantity(repo.load(), request.item_code, request.quantity, catalog)
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    return _record_response(record)


@router.post("/{session_id}/presets")
def apply_presets(session_id: str, request: PresetsRequest, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = stages.apply_room_presets(repo.load(), request.counts, get_catalog())
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    return _record_response(record)


@router.put("/{session_id}/volume")
def set_volume(session_id: str, request: VolumeRequest, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = stages.set_manual_volume(repo.load(), request.volume, get_catalog())
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    return _record_response(record)


@router.post("/{session_id}/locations")
async def set_locations(
    session_id: str,
    request: LocationsRequest,
    db: Session = Depends(get_db),
    estimator: RouteCostEstimator = Depends(get_route_estimator),
):
    """
    Store both addresses and compute the route. Provider failures fall back
    to the postcode estimate — the response carries route.warning when so.
    """
    repo = _repo(db, session_id)
    try:
        record = repo.load()
        if record.is_locked:
            raise QuoteLocked(record.quote_reference)
        if record.stage not in (Stage.LOCATIONS, Stage.ACCESS, Stage.FINAL):
            raise StageNotReady(Stage.LOCATIONS.value, [f"current stage is '{record.stage.value}'"])

        missing = [f"origin.{p}" for p in request.origin.missing_parts()]
        missing += [f"destination.{p}" for p in request.destination.missing_parts()]
        if missing:
            raise StageNotReady(Stage.LOCATIONS.value, missing)

        route = await estimator.estimate(request.origin, request.destination)
        record = stages.capture_locations(
            record, request.origin, request.destination, route,
            move_date=request.move_date,
            move_time=request.move_time,
            flexible_schedule=request.flexible_schedule,
        )
    except QuoteError as e:
        raise _http_error(e)

    repo.save(record)
    response = _record_response(record)
    response["route"] = {
        **route.model_dump(mode="json"),
        "duration_label": format_duration(route.duration_minutes),
    }
    return response


@router.patch("/{session_id}/schedule")
def update_schedule(session_id: str, request: ScheduleRequest, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = stages.update_schedule(
            repo.load(),
            flexible_schedule=request.flexible_schedule,
            move_date=request.move_date,
            move_time=request.move_time,
        )
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    return _record_response(record)


@router.post("/{session_id}/access")
def set_access_notes(session_id: str, request: AccessNotesRequest, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = stages.capture_access_notes(repo.load(), request.notes)
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    return _record_response(record)


@router.post("/{session_id}/continue")
def continue_quote(session_id: str, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = stages.advance(repo.load())
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    response = _record_response(record)
    response["quote_reference"] = record.quote_reference
    return response


@router.post("/{session_id}/return")
def return_to_stage(session_id: str, request: ReturnRequest, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = stages.return_to(repo.load(), request.stage)
    except QuoteError as e:
        raise _http_error(e)
    repo.save(record)
    return _record_response(record)


@router.get("/{session_id}/price")
def get_price(session_id: str, pricing_model: str = HOURLY, db: Session = Depends(get_db)):
    """
    Cost breakdown for the requested model, plus both totals so the
    customer can compare. Nothing is stored — price is recomputed each call.
    """
    try:
        record = _repo(db, session_id).load()
        costs = _price(record, pricing_model)
        totals = {model: pricing.calculate(record, model)["total"] for model in (HOURLY, FLAT)}
    except QuoteError as e:
        raise _http_error(e)

    return {
        "session_id": session_id,
        "quote_reference": record.quote_reference,
        "pricing_model": pricing_model,
        "crew_size": record.crew_size,
        "flexible_schedule": record.flexible_schedule,
        "is_weekend": record.is_weekend,
        "costs": costs,
        "totals": totals,
    }


@router.post("/{session_id}/contact")
async def submit_contact(
    session_id: str,
    request: ContactRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    repo = _repo(db, session_id)
    try:
        record = stages.attach_customer(repo.load(), request.name, request.email, request.phone)
        repo.save(record)
        email = {"email_sent": False, "notice": None}
        if request.send_email:
            email = await _send_quote_email(record, sender, request.pricing_model, "contact-submit")
    except QuoteError as e:
        raise _http_error(e)

    return {**_record_response(record), **email}


@router.post("/{session_id}/email")
async def email_quote(
    session_id: str,
    request: EmailRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    try:
        record = _repo(db, session_id).load()
        if not record.customer or not record.customer.email:
            raise StageNotReady(Stage.FINAL.value, ["customer.email"])
        email = await _send_quote_email(record, sender, request.pricing_model, request.trigger)
    except QuoteError as e:
        raise _http_error(e)
    return {"session_id": session_id, "quote_reference": record.quote_reference, **email}


@router.post("/{session_id}/accept")
def accept_quote(session_id: str, request: AcceptRequest, db: Session = Depends(get_db)):
    repo = _repo(db, session_id)
    try:
        record = repo.load()
        if record.is_locked:
            raise QuoteLocked(record.quote_reference)
        costs = _price(record, request.pricing_model)
        snapshot = export_quote_data(record, costs)
        record = stages.accept(record, request.pricing_model, snapshot)
    except QuoteError as e:
        raise _http_error(e)

    repo.save(record)
    return {
        "session_id": session_id,
        "quote_reference": record.quote_reference,
        "accepted_at": record.accepted_at.isoformat(),
        "total": snapshot["costs"]["total"],
        "accepted_quote": snapshot,
        "message": "Quote accepted. Our team will contact you shortly to confirm your booking.",
    }
