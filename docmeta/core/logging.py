from __future__ import annotations

import logging
import sys
from typing import Optional

from docmeta.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    resolved = (level or settings.log_level or "INFO").upper()
    root = logging.getLogger()
    if not any(getattr(h, "_docmeta_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._docmeta_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(getattr(logging, resolved, logging.INFO))
    # httpx logs every request at INFO; keep engine traffic out of the service log.
    logging.getLogger("httpx").setLevel(logging.WARNING)
