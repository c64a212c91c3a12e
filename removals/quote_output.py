"""
Quote output — reference numbers, the export snapshot and the email payload.

The export dict is the wire contract shared with the email relay and stored
as the accepted-quote snapshot, so its keys are camelCase. Everything else in
the service stays snake_case.
"""

import random
from datetime import date, datetime
from typing import Optional

from .config import settings
from .errors import StageNotReady
from .pricing_engine import HOURLY
from .quote_record import QuoteRecord, Stage, normalize_record


def generate_quote_reference(today: date = None, rng: random.Random = None,
                             prefix: str = None) -> str:
    """SRM-YYYYMMDD-NNN — date of issue plus a random 000-999 suffix."""
    today = today or date.today()
    rng = rng or random
    prefix = prefix or settings.QUOTE_REFERENCE_PREFIX
    return f"{prefix}-{today.strftime('%Y%m%d')}-{rng.randrange(1000):03d}"


# --- Display helpers ---

def format_duration(minutes) -> str:
    minutes = int(round(minutes or 0))
    hours, mins = divmod(minutes, 60)
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def crew_label(crew_size: int) -> str:
    return f"{crew_size} movers"


def move_date_label(move_date: Optional[date], move_time: str = None) -> str:
    if move_date is None:
        return "Schedule to be confirmed"
    label = move_date.strftime("%A, %d %B %Y")
    if move_time:
        label += f" at {move_time}"
    return label


def pricing_model_label(pricing_model: str) -> str:
    return "Hourly Rate" if pricing_model == HOURLY else "Flat Rate"


def _address_dict(address) -> Optional[dict]:
    if address is None:
        return None
    data = address.model_dump()
    data["full_address"] = address.full_address
    return data


# --- Export ---

def export_quote_data(record: QuoteRecord, costs: dict, reference: str = None) -> dict:
    """
    Snapshot of a priced quote. costs is a PricingEngine breakdown for the
    model being presented.
    """
    record = normalize_record(record)
    customer = record.customer
    route = record.route
    friction = record.friction_calculations

    return {
        "quoteReference": reference or record.quote_reference,
        "pricingModel": costs["pricing_model"],
        "customer": {
            "name": customer.name,
            "email": customer.email,
            "phone": customer.phone,
        },
        "move": {
            "date": record.move_date.isoformat() if record.move_date else None,
            "time": record.move_time,
            "isWeekend": record.is_weekend,
            "origin": _address_dict(record.origin),
            "destination": _address_dict(record.destination),
        },
        "inventory": {
            "totalItems": record.total_items,
            "totalVolume": record.total_volume,
            "items": [item.model_dump() for item in record.items_details],
        },
        "route": {
            "distanceKm": route.distance_km if route else None,
            "durationMinutes": route.duration_minutes if route else None,
            "tollCost": route.estimated_toll_cost if route else 0.0,
        },
        "crew": {
            "size": record.crew_size,
            "hourlyRate": costs["hourly_rate"],
        },
        "access": {
            "notes": record.friction_notes or "",
            "flexibleSchedule": bool(record.flexible_schedule),
        },
        "time": {
            "loadingHours": record.loading_time.loading_hours,
            "travelHours": costs["travel_hours"],
            "unloadingHours": record.loading_time.unloading_hours,
            "frictionMultiplier": friction.time_multiplier,
            "totalEstimatedHours": friction.total_estimated_hours,
        },
        "costs": {
            "laborCost": costs["labor_cost"],
            "travelCost": costs["travel_cost"],
            "surcharges": costs["total_surcharges"],
            "tolls": costs["tolls_cost"],
            "weekendPremium": costs.get("weekend_premium") or 0.0,
            "riskPremium": costs.get("risk_premium") or 0.0,
            "subtotalBeforeDiscount": costs.get("subtotal_before_discount", costs["subtotal"]),
            "flexibleDiscount": costs.get("backload_discount") or 0.0,
            "subtotal": costs["subtotal"],
            "total": costs["total"],
        },
        "generatedAt": datetime.utcnow().isoformat() + "Z",
    }


def build_overview(export: dict) -> str:
    costs = export["costs"]
    time = export["time"]
    inventory = export["inventory"]

    lines = [
        f"Quote Reference: {export['quoteReference']}",
        f"Move Date: {export['move']['date'] or 'TBC'}",
        f"Pricing Model: {pricing_model_label(export['pricingModel'])}",
        "",
        f"Total Quote: ${costs['total']:.2f}",
        f"Labor: ${costs['laborCost']:.2f}",
        f"Travel: ${costs['travelCost']:.2f}",
        f"Access Surcharges: ${costs['surcharges']:.2f}",
        f"Tolls: ${costs['tolls']:.2f}",
    ]
    if costs["weekendPremium"]:
        lines.append(f"Weekend Premium: ${costs['weekendPremium']:.2f}")
    if costs["flexibleDiscount"]:
        lines.append(f"Backloading Discount: -${costs['flexibleDiscount']:.2f}")
    lines += [
        "",
        "Crew & Timing:",
        f"- Crew Size: {export['crew']['size']}",
        f"- Handling Hours: {time['loadingHours']:.1f}h",
        f"- Travel Hours: {time['travelHours']:.1f}h",
        f"- Total Estimated Hours: {time['totalEstimatedHours']:.1f}h",
        "",
        "Inventory Summary:",
        f"- Total Items: {inventory['totalItems']}",
        f"- Total Volume: {inventory['totalVolume']:.2f} m³",
    ]
    return "\n".join(lines)


def build_email_payload(record: QuoteRecord, costs: dict, trigger: str = "manual",
                        company_name: str = None) -> dict:
    if record.stage not in (Stage.FINAL, Stage.ACCEPTED) or not record.quote_reference:
        raise StageNotReady(Stage.FINAL.value, ["quote_reference"])
    if not record.customer or not record.customer.email:
        raise StageNotReady(Stage.FINAL.value, ["customer.email"])

    export = export_quote_data(record, costs)
    company_name = company_name or settings.COMPANY_NAME
    return {
        "to": export["customer"]["email"],
        "name": export["customer"]["name"],
        "trigger": trigger,
        "subject": f"{company_name} Quote - {export['quoteReference']}",
        "overview": build_overview(export),
        "quote": export,
    }
