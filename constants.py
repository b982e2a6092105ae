import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 9000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

SERVICE_NAME = os.getenv("SERVICE_NAME", "peersignal")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

DEFAULT_DISPLAY_NAME = os.getenv("DEFAULT_DISPLAY_NAME", "Anonymous")
