# tripmaker/settings.py
"""Environment driven configuration shared by the planner modules."""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "")
RANKING_MODEL = os.getenv("TRIP_PLANNER_RANKING_MODEL", "gpt-4o-mini")
USER_AGENT = os.getenv("TRIP_PLANNER_USER_AGENT", "TripMaker/1.0")
HTTP_TIMEOUT = float(os.getenv("TRIP_PLANNER_HTTP_TIMEOUT", "10"))

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
COMMONS_API_URL = "https://commons.wikimedia.org/w/api.php"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger with the planner's handler and level applied."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False
    return logger
