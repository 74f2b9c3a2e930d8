"""Default moderation policy constants."""

from typing import Final


# Log component names
COMPONENT_CONFIG = "config"

# Integration classes for per-source rate limits (requests per window)
DEFAULT_RATE_LIMIT_CLASS: Final = "default"
DEFAULT_RATE_LIMITS: Final[dict[str, int]] = {
    "community-hub": 20,
    "automation": 30,
    "social-media": 50,
    DEFAULT_RATE_LIMIT_CLASS: 30,
}
DEFAULT_RATE_LIMIT_WINDOW_SECONDS: Final = 60.0

# Community guideline screening
DEFAULT_OPPRESSIVE_TERMS: Final[list[str]] = [
    "thug",
    "ghetto",
    "articulate",
    "urban",
    "welfare queen",
]
DEFAULT_TRAUMA_TERMS: Final[list[str]] = ["violence", "death", "abuse", "assault"]
DEFAULT_CONTENT_WARNING_MARKERS: Final[list[str]] = ["content warning", "tw:", "cw:"]

# Keyword maps used to derive a content category
DEFAULT_CATEGORY_KEYWORDS: Final[dict[str, list[str]]] = {
    "community-organizing": [
        "organize",
        "organizing",
        "mobilize",
        "activism",
        "movement",
        "campaign",
        "protest",
        "demonstration",
        "collective",
        "solidarity",
    ],
    "arts-culture": [
        "art",
        "artist",
        "creative",
        "culture",
        "music",
        "performance",
        "literature",
        "poetry",
        "dance",
        "theater",
    ],
    "economic-justice": [
        "economic",
        "finance",
        "wage",
        "income",
        "wealth",
        "inequality",
        "poverty",
        "employment",
        "cooperative",
        "trade union",
    ],
    "health-wellness": [
        "health",
        "wellness",
        "mental health",
        "healthcare",
        "therapy",
        "healing",
        "medicine",
        "fitness",
        "nutrition",
        "self-care",
    ],
    "education": [
        "education",
        "school",
        "university",
        "learning",
        "teach",
        "student",
        "curriculum",
        "academic",
        "literacy",
    ],
    "technology": [
        "technology",
        "digital",
        "internet",
        "social media",
        "platform",
        "software",
        "data",
        "privacy",
        "algorithm",
    ],
    "politics-policy": [
        "politics",
        "policy",
        "government",
        "legislation",
        "voting",
        "election",
        "democracy",
        "civic",
    ],
    "environment": [
        "environment",
        "climate",
        "sustainability",
        "ecology",
        "conservation",
        "renewable",
        "pollution",
        "nature",
    ],
}
