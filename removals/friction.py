"""
Stage 3 — Access notes (friction).

Customers describe stairs, parking, lift bookings and the like in free text.
The notes travel with the quote to the move planner, who confirms access by
phone. No penalty is derived from the text: the adjustment is always neutral
(time multiplier 1, no delay, no friction surcharge). Specialty-item
surcharges computed in stage 1 are carried forward into the surcharge block.
"""

import logging

from .errors import StageNotReady
from .quote_record import FrictionCalculations, QuoteRecord, Stage, Surcharges, travel_hours

logger = logging.getLogger(__name__)

NEUTRAL_TIME_MULTIPLIER = 1.0
NEUTRAL_FRICTION_DELAY = 0.0


class FrictionAdjuster:
    """
    Stage 3 of the pipeline.

    Input: QuoteRecord with route + free-text notes
    Output: the same record with friction_notes, friction_calculations
    and surcharges filled in
    """

    def calculate(self, record: QuoteRecord) -> FrictionCalculations:
        handling = record.loading_time.total_handling_hours * NEUTRAL_TIME_MULTIPLIER
        return FrictionCalculations(
            time_multiplier=NEUTRAL_TIME_MULTIPLIER,
            adjusted_handling_hours=handling,
            friction_delay=NEUTRAL_FRICTION_DELAY,
            total_estimated_hours=handling + NEUTRAL_FRICTION_DELAY + travel_hours(record),
        )

    def surcharges(self, record: QuoteRecord) -> Surcharges:
        return Surcharges(
            stairs=0.0,
            access=0.0,
            total_friction=0.0,
            specialty_items=record.specialty_surcharges or 0.0,
        )

    def apply(self, record: QuoteRecord, notes: str = None) -> QuoteRecord:
        if record.route is None:
            raise StageNotReady(Stage.ACCESS.value, ["route"])

        record.friction_notes = notes if notes is not None else ""
        record.friction_calculations = self.calculate(record)
        record.surcharges = self.surcharges(record)
        logger.debug(
            "Access notes captured for %s (%d chars), neutral adjustment applied",
            record.session_id, len(record.friction_notes),
        )
        return record
