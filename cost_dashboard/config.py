import os, logging
from typing import List, Optional

LOG_FORMAT = "[cost-dashboard] %(levelname)s %(name)s: %(message)s"


def baseline_path() -> Optional[str]:
    return os.environ.get("COST_BASELINE_PATH") or None


def cors_allow_origins() -> List[str]:
    raw = os.environ.get("CORS_ALLOW_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


def configure_logging():
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
