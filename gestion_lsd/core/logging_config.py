from __future__ import annotations

import logging
import os
import sys


def configurer_logging() -> None:
    """Configuration de logging pour l’API et les scripts.

    - format clé=valeur, lisible et facile à parser
    - niveau configurable via LOG_LEVEL
    - sortie stdout (compatible Docker / cron)
    """

    level_str = os.getenv("LOG_LEVEL", "INFO").upper().strip()
    level = getattr(logging, level_str, logging.INFO)

    # Évite les doubles handlers si appelé plusieurs fois
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        stream=sys.stdout,
        format="%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s",
    )
