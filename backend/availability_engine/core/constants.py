"""Constants shared across the availability engine."""

import re

PROVIDER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")

MINUTES_PER_DAY = 24 * 60
SECONDS_PER_DAY = MINUTES_PER_DAY * 60

# Wall-clock strings accepted for slot bounds; 24:00 closes a slot at midnight.
TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$")
END_OF_DAY_STRINGS = frozenset({"24:00", "24:00:00"})

RESOLVED_CACHE_NAMESPACE = "avail:resolved"
PROVIDER_LOCK_NAMESPACE = "avail:lock:provider"
