"""Application configuration with sensible defaults."""
import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"
WEB_DIR = BASE_DIR / "web"

# Gemini configuration
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
CHAT_MODEL = os.getenv("CHAT_MODEL", "gemini-2.5-flash")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60.0"))

# Source document (local path or http(s) URL)
PDF_SOURCE = os.getenv(
    "PDF_SOURCE", str(DATA_DIR / "StudentGuide2025_compressed.pdf")
)
DOCUMENT_TITLE = os.getenv("DOCUMENT_TITLE") or PDF_SOURCE.rstrip("/").rsplit("/", 1)[-1]
GUIDE_NAME = os.getenv("GUIDE_NAME", "Student Guide 2025")
MUPDF_DISPLAY_ERRORS = os.getenv("MUPDF_DISPLAY_ERRORS", "false").lower() == "true"

# RAG parameters
SELECTION_MAX_RESULTS = int(os.getenv("SELECTION_MAX_RESULTS", "3"))
SELECTION_TEMPERATURE = float(os.getenv("SELECTION_TEMPERATURE", "0.0"))
SELECTION_CORPUS_WARN_CHARS = int(os.getenv("SELECTION_CORPUS_WARN_CHARS", "200000"))
ANSWER_TEMPERATURE = float(os.getenv("ANSWER_TEMPERATURE", "0.3"))

# Request limits
MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))

# UI & assets
STATIC_VERSION = os.getenv("STATIC_VERSION", "1.0.0")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
