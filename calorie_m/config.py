import os


def _parse_cors_origins(raw: str) -> list[str]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


CORS_ORIGINS = _parse_cors_origins(os.getenv("CORS_ORIGINS", "*"))

# -----------------------------------
# Gemini credential
# -----------------------------------

# Value shipped in the sample config; never a usable key.
API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"


def get_api_key():
    """Read GEMINI_API_KEY at call time, so a key exported after import still counts."""
    return os.getenv("GEMINI_API_KEY")


# CREDENTIAL_POLL_INTERVAL_MS / CREDENTIAL_POLL_ATTEMPTS: bounded wait for the key
# Default: 30 checks 100ms apart (3s ceiling).
CREDENTIAL_POLL_INTERVAL_MS = int(os.getenv("CREDENTIAL_POLL_INTERVAL_MS", "100"))
CREDENTIAL_POLL_ATTEMPTS = int(os.getenv("CREDENTIAL_POLL_ATTEMPTS", "30"))

# -----------------------------------
# Gemini / model configuration
# -----------------------------------

# GEMINI_MODEL: vision model used for the single generateContent call
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
).rstrip("/")

# GEMINI_TIMEOUT_S: socket timeout for the outbound call (seconds)
GEMINI_TIMEOUT_S = float(os.getenv("GEMINI_TIMEOUT_S", "30"))

# -----------------------------------
# Upload / normalization
# -----------------------------------

# MAX_UPLOAD_BYTES: files above this are rejected before decoding (10MB)
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

# MAX_IMAGE_WIDTH / MAX_IMAGE_HEIGHT: bounding box of the normalized image.
# Smaller images are never upscaled.
MAX_IMAGE_WIDTH = int(os.getenv("MAX_IMAGE_WIDTH", "800"))
MAX_IMAGE_HEIGHT = int(os.getenv("MAX_IMAGE_HEIGHT", "600"))

# JPEG_QUALITY: Pillow quality (1-95) for the re-encoded payload
JPEG_QUALITY = int(os.getenv("JPEG_QUALITY", "80"))

# -----------------------------------
# Diagnostics
# -----------------------------------

# DEBUG_MODE: append environment diagnostics to configuration error messages
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"
