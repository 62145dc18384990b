import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return float(value)


_GCP_PROJECT_ID = os.getenv('GCP_PROJECT_ID')
_GCP_REGION = os.getenv('GCP_REGION', 'asia-northeast1')

_ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY') or os.getenv('CLAUDE_API_KEY')

_CLAUDE_MODEL = os.getenv('CLAUDE_MODEL', 'claude-sonnet-4-5-20250929')

_MODEL_TIMEOUT_SECONDS = float(os.getenv('MODEL_TIMEOUT_SECONDS', '30'))
_MODEL_TEMPERATURE = float(os.getenv('MODEL_TEMPERATURE', '0.7'))
_MODEL_MAX_OUTPUT_TOKENS = int(os.getenv('MODEL_MAX_OUTPUT_TOKENS', '1024'))
# Newer Claude models reject temperature and top_p in the same request
_MODEL_TOP_P = _optional_float('MODEL_TOP_P')

_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv('ALLOWED_ORIGINS', 'http://localhost:5173').split(',')
    if origin.strip()
]


class Config:
    """Central configuration for the journal feedback service."""

    SERVICE_NAME = 'journal-feedback-service'
    PORT = int(os.getenv('PORT', '8080'))
    HOST = '0.0.0.0'

    GCP_PROJECT_ID = _GCP_PROJECT_ID
    GCP_REGION = _GCP_REGION

    ANTHROPIC_API_KEY = _ANTHROPIC_API_KEY

    CLAUDE_MODEL = _CLAUDE_MODEL

    MODEL_TIMEOUT_SECONDS = _MODEL_TIMEOUT_SECONDS
    MODEL_TEMPERATURE = _MODEL_TEMPERATURE
    MODEL_MAX_OUTPUT_TOKENS = _MODEL_MAX_OUTPUT_TOKENS
    MODEL_TOP_P = _MODEL_TOP_P

    ALLOWED_ORIGINS = _ALLOWED_ORIGINS

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    ENVIRONMENT = os.getenv('ENVIRONMENT', 'production').lower()

    RATE_LIMIT_MAX_REQUESTS = int(os.getenv('RATE_LIMIT_MAX_REQUESTS', '20'))
    RATE_LIMIT_WINDOW_SECONDS = float(os.getenv('RATE_LIMIT_WINDOW_SECONDS', '60'))

    @property
    def USE_VERTEX(self) -> bool:
        """Route model calls through Vertex AI when a GCP project is configured."""
        return bool(self.GCP_PROJECT_ID)


settings = Config()
