import os

DB_PATH = os.getenv("DB_PATH", "data.sqlite")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
# any OpenAI-compatible endpoint (e.g. DeepSeek)
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
AI_ESTIMATE_MAX_ATTEMPTS = int(os.getenv("AI_ESTIMATE_MAX_ATTEMPTS", "3"))

HUBSPOT_API_KEY = os.getenv("HUBSPOT_API_KEY")  # bearer token

# optional; the open-access endpoint is used without it
EXCHANGERATE_API_KEY = os.getenv("EXCHANGERATE_API_KEY") or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))
