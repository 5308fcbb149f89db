APP_NAME = "RecallBridge Panic Cue Service"
APP_VERSION = "1.0.0"

PANIC_LEVELS = ("low", "medium", "high")
MODES = ("study", "exam", "revise")
SEVERITIES = ("low", "medium", "high")
COST_TIERS = ("low", "medium", "high")

DEFAULT_PANIC_LEVEL = "medium"
DEFAULT_MODE = "revise"
DEFAULT_LANGUAGE = "en"

MIN_TEXT_LENGTH = 20
ANCHOR_COUNT = 5
ANCHOR_MAX_WORDS = 8

DEFAULT_MODEL = "gpt-4.1-mini"
PREFERRED_MODELS = (
	"gpt-4.1-mini",
	"gpt-4o-mini",
	"gpt-4.1",
	"gpt-4o",
	"gpt-4-turbo",
)
NON_GENERATIVE_MODEL_MARKERS = (
	"embedding",
	"tts",
	"whisper",
	"dall-e",
	"moderation",
	"image",
	"audio",
	"realtime",
	"transcribe",
	"search",
)
TIMEOUT_MODEL_LABEL = "fallback"

DEFAULT_GENERATION_TIMEOUT_S = 12.0
DEFAULT_RATE_LIMITS = (
	(1_000, 1),
	(60 * 60 * 1_000, 30),
)

DEFAULT_RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
DEFAULT_RECAPTCHA_MIN_SCORE = 0.5
DEFAULT_RECAPTCHA_TIMEOUT_S = 5.0

VAGUENESS_INPUT_LIMIT = 2000
VAGUENESS_THRESHOLD = 0.45
VAGUENESS_MAX_TRIGGERS = 4

TELEMETRY_STATUSES = (
	"warmup",
	"rate_limited",
	"recaptcha_blocked",
	"clarification",
	"success",
	"parse_fallback",
	"timeout_fallback",
	"error",
)

DEFAULT_CORS_ALLOW_ORIGINS = ["*"]
