"""All magic values live here - no inline literals anywhere else."""

# Vision providers
PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"
OPENAI_VISION_MODEL = "gpt-4.1-nano"
CLAUDE_VISION_MODEL = "claude-sonnet-4-5-20250929"
CLAUDE_MAX_TOKENS = 300

# Image detail hint accepted by the Responses API
DETAIL_LEVELS = ("low", "high", "auto")

# Prompts
DEFAULT_PROMPT = (
    "Generate a brief (roughly 150 characters maximum) alt text description focusing on "
    "the main subject and overall composition. Do not add a prefix of any kind "
    "(e.g. alt text: AI content) so the value is suitable for the alt text attribute "
    "value of the image."
)
DEFAULT_PROMPT_TEMPLATE = DEFAULT_PROMPT + " Output in {site.language}"
DEFAULT_FILENAME_PROMPT = (
    "Suggest a short, descriptive, SEO-friendly filename for this image using three to "
    "six lowercase words separated by hyphens. Reply with the filename only, without an "
    "extension."
)

# Image normalization
ACCEPTED_MIME_TYPES = ("image/png", "image/jpeg", "image/webp", "image/gif")
GIF_MIME_TYPE = "image/gif"
# Graphic control extension: one per frame in an animated GIF
GIF_FRAME_MARKER = b"\x21\xf9\x04"
FALLBACK_FORMAT = "jpg"
MAX_LONG_EDGE = 2000
MAX_SHORT_EDGE = 768
TRANSFORM_MODE_FIT = "fit"
LARGE_FILE_BYTES = 20 * 1024 * 1024
LARGE_FILE_QUALITY = 75
KIND_IMAGE = "image"

# Queue descriptions - ExistingWorkIndex parses these back, keep them in sync
JOB_DESCRIPTION = "Generating alt text for {filename} (Asset: {asset_id})"
JOB_DESCRIPTION_SITE = "Generating alt text for {filename} (Asset: {asset_id}, Site: {site_id})"
JOB_DESCRIPTION_PATTERN = r"\(Asset: (?P<asset_id>\d+)(?:, Site: (?P<site_id>\d+))?\)$"

# Default file locations
DEFAULT_CATALOG_PATH = "assets.json"
DEFAULT_QUEUE_PATH = ".alt_text_jobs.json"

# Log / user-facing messages
MSG_DUPLICATE_WORK = (
    "%s (ID: %s) is already being processed within an existing queued job. "
    "Please wait for the existing job to finish before attempting to process it again."
)
MSG_NOT_AN_IMAGE = "%s (ID: %s) is not an image"
MSG_ANIMATED = "Animated GIF detected, this is not supported: %s"
MSG_UNREADABLE = "Could not read the contents of %s"
MSG_PRESAVE_FAILED = "Failed to pre-save asset: %s"
MSG_SAVE_FAILED = "Failed to save alt text for asset: %s"
MSG_RENAME_FAILED = "Failed to save filename for asset: %s"
MSG_ASSET_NOT_FOUND = "Asset not found: %s (site %s)"
MSG_EMPTY_OUTPUT = "No text was generated"
MSG_QUEUED = "Alt text generation has been queued"
MSG_JOB_FAILED = "Error: %s"
MSG_NOTHING_QUEUED = "No assets found to process."
