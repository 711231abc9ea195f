import os

# Paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CATALOG_PATH = os.getenv("CATALOG_PATH", os.path.join(BASE_DIR, "data", "catalog.json"))
ALIAS_TABLE_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "course_aliases.json")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "open" resolves every query to the general column, "declared" uses the
# candidate's own category column when it has data.
CATEGORY_POLICY = os.getenv("CATEGORY_POLICY", "open").lower()

ALGORITHM_VERSION = "4.0"

# Eligibility: cutoff must lie in [P, P + ELIGIBILITY_WINDOW]
ELIGIBILITY_WINDOW = 3.0

# Rounds published in one CAP cycle
CANONICAL_ROUNDS = 4

CONFIDENCE_BASE = 29
CONFIDENCE_SPAN = 70
CONFIDENCE_CAP = 99

# Share of the total drop credited back to the candidate when cutoffs fall
TREND_LENIENCY = 0.5

# (minimum finalGap, admissionChance, probability, riskLabel), checked top-down
PROBABILITY_BANDS = [
    (1.0, 95, "Safe", "Very High Chance"),
    (0.0, 85, "Probable", "Very High Chance"),
    (-1.0, 65, "Probable", "Probable"),
    (-2.5, 45, "Borderline", "Borderline"),
    (float("-inf"), 25, "Difficult", "Borderline"),
]
VERY_HIGH_CHANCE_THRESHOLD = 90

HIGH_CHANCE_MIN = 60
MEDIUM_CHANCE_MIN = 40

CATEGORY_KEYS = ("general", "obc", "sc", "st", "ews", "vjnt", "nt1", "nt2", "nt3", "sebc")

CANDIDATE_CATEGORIES = (
    {"open", "tfws"}
    | set(CATEGORY_KEYS)
    | {f"ladies_{key}" for key in CATEGORY_KEYS}
)

SEAT_TYPE_TFWS = "TFWS"
SEAT_TYPE_LADIES = "Ladies"
SEAT_TYPE_OPEN = "HU"

DEFAULT_UNIVERSITY_TYPE = "Home University"
ALL_CITIES = "All Cities"
