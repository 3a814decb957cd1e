"""Centralized default values and configuration constants.

All magic numbers and hardcoded thresholds should be defined here
to avoid duplication and ensure consistency across the codebase.
Durations are in seconds.
"""

MINUTE = 60.0
HOUR = 60 * MINUTE
DAY = 24 * HOUR
MONTH = 30 * DAY  # Calendar-agnostic month used by all age thresholds

# =============================================================================
# FINGERPRINTING
# =============================================================================

FINGERPRINT_ALGORITHM = "sha256"
FINGERPRINT_SEPARATOR = "|"

# Placeholders substituted during message normalization. Lowercasing runs
# after substitution, so they appear lowercased in normalized output.
UUID_PLACEHOLDER = "UUID"
HEX_PLACEHOLDER = "HEXADDR"
NUMBER_PLACEHOLDER = "N"

# =============================================================================
# RESULT CACHE
# =============================================================================

CACHE_TTL = 24 * HOUR
CACHE_MAX_ENTRIES = 1000
CACHE_SWEEP_INTERVAL = 5 * MINUTE
CACHE_ENTRY_SIZE_ESTIMATE = 2048  # bytes per entry, rough JSON + overhead

# =============================================================================
# QUALITY SCORING
# =============================================================================

QUALITY_AGE_THRESHOLD = 6 * MONTH
QUALITY_MAX_AGE_PENALTY = 0.5  # 50% reduction at/after the threshold
QUALITY_VALIDATION_BONUS = 0.2
QUALITY_USAGE_BONUS_WEIGHT = 0.1  # log10(usage + 1) * weight
QUALITY_MIN = 0.1
QUALITY_MAX = 1.0
QUALITY_POSITIVE_BOOST = 1.2
QUALITY_NEGATIVE_REDUCTION = 0.5

# =============================================================================
# LIFECYCLE
# =============================================================================

LIFECYCLE_MIN_QUALITY_THRESHOLD = 0.3
LIFECYCLE_MAX_AGE = 6 * MONTH
LIFECYCLE_OLD_AGE_WATERMARK = 3 * MONTH
LIFECYCLE_AUTO_PRUNE_INTERVAL = 24 * HOUR
LIFECYCLE_RECALCULATION_EPSILON = 0.01
LIFECYCLE_SCAN_BATCH_SIZE = 100

# Quality distribution bucket lower bounds
QUALITY_BUCKET_EXCELLENT = 0.8
QUALITY_BUCKET_GOOD = 0.6
QUALITY_BUCKET_FAIR = 0.4

# =============================================================================
# FEEDBACK
# =============================================================================

FEEDBACK_POSITIVE_MULTIPLIER = 1.2
FEEDBACK_NEGATIVE_MULTIPLIER = 0.5
FEEDBACK_MAX_CONFIDENCE = 1.0
FEEDBACK_MIN_CONFIDENCE = 0.1
FEEDBACK_MAX_CONFLICT_RETRIES = 3

# =============================================================================
# STORES
# =============================================================================

REDIS_RECORD_KEY_PREFIX = "rootcache:record"
POSTGRES_RECORD_TABLE = "analysis_records"
