# signal_scoring/infrastructure/config/env_loader.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


logger = logging.getLogger("env_loader")

DEFAULT_ENV_FILE = "/etc/signal_scoring/signal_scoring.env"


def _candidates(env_file: Optional[str]) -> List[str]:
    out: List[str] = []
    if env_file:
        out.append(env_file)
    from_env = os.getenv("SETTLEMENT_ENV_FILE")
    if from_env:
        out.append(from_env)
    out.append(DEFAULT_ENV_FILE)
    # .../signal_scoring/infrastructure/config/env_loader.py -> parents[3] == project root
    out.append(str(Path(__file__).resolve().parents[3] / ".env"))
    out.append(str(Path.cwd() / ".env"))
    return out


def load_env(env_file: Optional[str] = None) -> Optional[str]:
    """Load the first existing env file.

    Order: explicit arg, SETTLEMENT_ENV_FILE, /etc/signal_scoring/signal_scoring.env,
    project-root .env, cwd .env. Existing process variables win unless
    SETTLEMENT_ENV_OVERRIDE=1.

    Returns the path used, else None.
    """
    override = os.getenv("SETTLEMENT_ENV_OVERRIDE", "0").strip().lower() in ("1", "true", "yes", "y", "on")
    for p in _candidates(env_file):
        if not os.path.isfile(p):
            continue
        try:
            load_dotenv(p, override=override)
        except OSError as e:
            logger.warning("could not read env file %s: %s", p, e)
            continue
        logger.debug("loaded env from %s", p)
        return p
    return None
