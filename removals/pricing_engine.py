"""
Stage 4 — Pricing Engine.

Turns a QuoteRecord into a cost breakdown under one of two models:
- hourly: crew rate × (handling + travel hours), plus surcharges and tolls,
  less the backloading discount, plus the weekend premium
- flat: the hourly total plus a risk premium for price certainty

Pure math — recomputed from scratch on every call, nothing is stored.
No rounding happens here; rounding is a presentation concern.
"""

from .errors import StageNotReady
from .quote_record import QuoteRecord, Stage, normalize_record

HOURLY = "hourly"
FLAT = "flat"
PRICING_MODELS = (HOURLY, FLAT)


class PricingEngine:
    """
    Stage 4 of the pipeline. Stateless — safe to share a single instance.
    """

    # Crew hourly rates (AUD). 2 movers $180-200, 3 movers $260-300,
    # 4 movers $350-400 — midpoints used.
    HOURLY_RATES = {
        2: 190.0,
        3: 280.0,
        4: 375.0,
    }
    DEFAULT_CREW = 4

    WEEKEND_PREMIUM = 0.15
    FLAT_RATE_PREMIUM = 0.12
    BACKLOAD_DISCOUNT_RATE = 0.5

    def calculate(self, record: QuoteRecord, pricing_model: str = HOURLY) -> dict:
        if pricing_model == HOURLY:
            return self.calculate_hourly_costs(record)
        if pricing_model == FLAT:
            return self.calculate_flat_rate_costs(record)
        raise ValueError(
            f"Unknown pricing model: {pricing_model}. Available: {list(PRICING_MODELS)}"
        )

    def hourly_rate(self, crew_size) -> float:
        return self.HOURLY_RATES.get(crew_size, self.HOURLY_RATES[self.DEFAULT_CREW])

    def calculate_hourly_costs(self, record: QuoteRecord) -> dict:
        if record.route is None:
            raise StageNotReady(Stage.FINAL.value, ["route"])

        record = normalize_record(record)
        friction = record.friction_calculations
        surcharges = record.surcharges

        hourly_rate = self.hourly_rate(record.crew_size)
        handling_hours = friction.adjusted_handling_hours
        travel_hours = record.route.duration_minutes / 60

        # Labor is handling only — travel is billed separately for transparency
        labor_cost = handling_hours * hourly_rate
        travel_cost = travel_hours * hourly_rate

        total_surcharges = surcharges.total_friction + (surcharges.specialty_items or 0.0)
        tolls_cost = record.route.estimated_toll_cost

        totals = self.compose_total(
            labor_cost, travel_cost, total_surcharges, tolls_cost,
            flexible_schedule=record.flexible_schedule,
            is_weekend=record.is_weekend,
        )

        return {
            "pricing_model": HOURLY,
            "hourly_rate": hourly_rate,
            "total_hours": friction.total_estimated_hours,
            "handling_hours": handling_hours,
            "travel_hours": travel_hours,
            "labor_cost": labor_cost,
            "travel_cost": travel_cost,
            "total_surcharges": total_surcharges,
            "tolls_cost": tolls_cost,
            **totals,
            "risk_premium": 0.0,
        }

    def calculate_flat_rate_costs(self, record: QuoteRecord) -> dict:
        costs = self.calculate_hourly_costs(record)
        risk_premium = costs["total"] * self.FLAT_RATE_PREMIUM
        costs.update({
            "pricing_model": FLAT,
            "hourly_total": costs["total"],
            "risk_premium": risk_premium,
            "total": costs["total"] + risk_premium,
        })
        return costs

    def compose_total(self, labor_cost: float, travel_cost: float,
                      total_surcharges: float, tolls_cost: float,
                      flexible_schedule: bool = False, is_weekend: bool = False) -> dict:
        """
        Discount and premium arithmetic shared by both models.

        The backloading discount only ever touches labor + travel; surcharges
        and tolls are passed through at cost. The weekend premium applies to
        the discounted subtotal.
        """
        subtotal_before_discount = labor_cost + travel_cost + total_surcharges + tolls_cost

        backload_discount = 0.0
        if flexible_schedule:
            backload_discount = (labor_cost + travel_cost) * self.BACKLOAD_DISCOUNT_RATE

        subtotal = max(0.0, subtotal_before_discount - backload_discount)

        weekend_premium = 0.0
        if is_weekend:
            weekend_premium = subtotal * self.WEEKEND_PREMIUM

        return {
            "subtotal_before_discount": subtotal_before_discount,
            "backload_discount": backload_discount,
            "subtotal": subtotal,
            "weekend_premium": weekend_premium,
            "total": subtotal + weekend_premium,
        }
