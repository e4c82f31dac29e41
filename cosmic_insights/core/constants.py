"""Constantes partagées (statuts HTTP, fournisseurs, fonctionnalités)."""

HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVICE_UNAVAILABLE = 503

# Statuts pour lesquels on passe à la clé suivante du pool
WEB_ROTATE_STATUSES = frozenset({HTTP_STATUS_UNAUTHORIZED, HTTP_STATUS_TOO_MANY_REQUESTS})
GEMINI_ROTATE_STATUSES = frozenset(
    {HTTP_STATUS_UNAUTHORIZED, HTTP_STATUS_FORBIDDEN, HTTP_STATUS_TOO_MANY_REQUESTS}
)

# Fournisseurs
WEB_PROVIDER = "perplexity"
GENERAL_PROVIDER = "gemini"

# Slots de configuration: (pluriel, simple)
PROVIDER_KEY_SLOTS: dict[str, tuple[str, str]] = {
    WEB_PROVIDER: ("PERPLEXITY_API_KEYS", "PERPLEXITY_API_KEY"),
    GENERAL_PROVIDER: ("GEMINI_API_KEYS", "GEMINI_API_KEY"),
}

GENERAL_FINGERPRINT = "general"
STATIC_SOURCE = "static"

LANGUAGE_NAMES = {"en": "English", "hi": "Hindi"}
DEFAULT_LANGUAGE = "en"

ZODIAC_SIGNS = (
    "Aries",
    "Taurus",
    "Gemini",
    "Cancer",
    "Leo",
    "Virgo",
    "Libra",
    "Scorpio",
    "Sagittarius",
    "Capricorn",
    "Aquarius",
    "Pisces",
)
