"""
Ranking engine constants.
Centralized values for the VOLaM score, nullness tracking, empathy fit, and answer composition.
"""

# ============================================================================
# EMBEDDING MODEL SETTINGS
# ============================================================================

# Production embedding model: 768-dim, strong general-purpose retrieval quality
EMBEDDING_MODEL_NAME_PROD = "sentence-transformers/all-mpnet-base-v2"

# Test embedding model: lightweight, fast downloads for testing
EMBEDDING_MODEL_NAME_TEST = "sentence-transformers/all-MiniLM-L6-v2"

# ============================================================================
# VECTOR INDEX SETTINGS
# ============================================================================

# Backends selectable at construction time; anything else fails fast
VECTOR_BACKENDS = ("flat", "pinecone")

# ============================================================================
# RETRIEVAL SETTINGS
# ============================================================================

# VOLaM mode over-fetches max(k * factor, floor) candidates before re-ranking
VOLAM_OVERFETCH_FACTOR = 2
VOLAM_OVERFETCH_MIN = 10

# ============================================================================
# RANKING SETTINGS
# ============================================================================

# Default VOLaM weights: score = alpha*cosine + beta*(1 - nullness) + gamma*empathy_fit
VOLAM_DEFAULT_WEIGHTS = {
    "alpha": 0.6,  # cosine similarity
    "beta": 0.3,  # certainty
    "gamma": 0.1,  # stakeholder empathy fit
}

# Scores closer than this are treated as tied and ordered by cosine similarity
RANKING_TIE_EPSILON = 0.001

# ============================================================================
# NULLNESS TRACKING
# ============================================================================

# Nullness of a concept with no history
NULLNESS_DEFAULT = 0.5

# Default learning rate and per-hour decay for explicit support/refute updates
NULLNESS_DEFAULT_K = 0.1
NULLNESS_DEFAULT_LAMBDA = 0.9

# Trailing window (hours) used for delta nullness when none is given
NULLNESS_DELTA_WINDOW_HOURS = 24

# Number of leading query tokens that form a concept id
CONCEPT_TOKEN_COUNT = 3

NULLNESS_TRIGGER_EVIDENCE = "evidence_added"
NULLNESS_TRIGGER_MANUAL = "manual_update"

# ============================================================================
# EMPATHY FIT
# ============================================================================

# Fit returned when evidence carries no stakeholder tags
EMPATHY_NEUTRAL_FIT = 0.5

# Fit returned when tags exist but none match the profile
EMPATHY_UNMATCHED_FIT = 0.2

# Bonus per matched stakeholder, capped
EMPATHY_MATCH_BONUS = 0.1
EMPATHY_MATCH_BONUS_CAP = 0.3

DEFAULT_PROFILE_NAME = "default"

DEFAULT_STAKEHOLDER_WEIGHTS = {
    "general_public": 0.4,
    "experts": 0.3,
    "policymakers": 0.2,
    "affected_communities": 0.1,
}

# Built-in profiles used when the profile file cannot be read
BUILTIN_EMPATHY_PROFILES = {
    "default": {
        "name": "Default Profile",
        "stakeholders": DEFAULT_STAKEHOLDER_WEIGHTS,
    },
    "climate_focused": {
        "name": "Climate-Focused Profile",
        "stakeholders": {
            "affected_communities": 0.4,
            "environmental_scientists": 0.3,
            "policymakers": 0.2,
            "general_public": 0.1,
        },
    },
}

# Keyword lists for content tagging (substring match on lowercased content)
STAKEHOLDER_KEYWORDS = {
    "general_public": ["public", "citizens", "people", "community", "society"],
    "experts": ["expert", "scientist", "researcher", "specialist", "professional"],
    "policymakers": ["policy", "government", "regulation", "law", "official"],
    "affected_communities": ["affected", "vulnerable", "marginalized", "impacted", "disadvantaged"],
    "environmental_scientists": ["environmental", "climate", "ecology", "conservation"],
    "healthcare_workers": ["healthcare", "medical", "doctor", "nurse", "patient"],
}

TOPIC_KEYWORDS = {
    "climate": ["climate", "global warming", "carbon", "emissions"],
    "technology": ["technology", "digital", "ai", "software", "computer"],
    "health": ["health", "medical", "disease", "treatment", "wellness"],
    "education": ["education", "learning", "school", "university", "teaching"],
}

# ============================================================================
# ANSWER COMPOSITION
# ============================================================================

# Citation quotes longer than this are truncated
CITATION_MAX_CHARS = 100
CITATION_TRUNCATE_CHARS = 97

# Confidence bands used in rationales
CONFIDENCE_BAND_HIGH = 0.8
CONFIDENCE_BAND_MODERATE = 0.6

# ============================================================================
# OFFLINE EVALUATION
# ============================================================================

CALIBRATION_BINS = 10

# Targets for VOLaM vs baseline comparison
TARGET_ACCURACY_GAIN = 0.10
TARGET_BRIER_REDUCTION = 0.15
TARGET_ECE_REDUCTION = 0.15
