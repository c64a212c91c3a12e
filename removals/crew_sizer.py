# Crew size by volume — same thresholds for inventory and manual volume.
#   < 15 m³  (1 bedroom)      -> 2 movers
#   < 35 m³  (2-3 bedrooms)   -> 3 movers
#   >= 35 m³ (4+ bedrooms)    -> 4 movers

CREW_THRESHOLDS = [
    (15.0, 2),
    (35.0, 3),
]
MAX_CREW = 4
MIN_CREW = 2


def recommend_crew_size(volume) -> int:
    if not volume:
        return MIN_CREW
    for upper, crew in CREW_THRESHOLDS:
        if volume < upper:
            return crew
    return MAX_CREW
