"""Maintenance périodique (à planifier en cron, ex: toutes les 5 minutes).

Usage:
    python -m scripts.maintenance

Exit codes:
    0: OK
    1: échec (détail dans les logs)
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from gestion_lsd.core.base_donnees import fournir_session_async
from gestion_lsd.core.logging_config import configurer_logging
from gestion_lsd.domaine.services.maintenance import executer_maintenance


logger = logging.getLogger(__name__)


async def executer() -> int:
    async for session in fournir_session_async():
        try:
            await executer_maintenance(session)
        except SQLAlchemyError:
            await session.rollback()
            logger.exception("maintenance_echec")
            return 1
    return 0


def main() -> int:
    configurer_logging()
    return asyncio.run(executer())


if __name__ == "__main__":
    raise SystemExit(main())
