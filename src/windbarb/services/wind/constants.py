from zoneinfo import ZoneInfo

from windbarb.utils.durations import HOUR_MS, MINUTE_MS

UTC = ZoneInfo("UTC")

ALIGNMENT_TOLERANCE_MS = 10 * MINUTE_MS
DEFAULT_WINDOW_MS = 10 * MINUTE_MS
DEFAULT_MIN_POINTS = 3

MOBILE_MAX_WIDTH_PX = 400
TABLET_MAX_WIDTH_PX = 800

MAX_LEGACY_BINS = 12
LEGACY_HOURS_PER_BIN = 2

KPH_PER_MPS = 3.6
FORECAST_STEP_MS = HOUR_MS

# Upper bound on sample instants per resolved range.
MAX_SAMPLE_TIMES = 10_000
