from __future__ import annotations

from datetime import datetime, timezone


def maintenant_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def en_utc(valeur: datetime | None) -> datetime | None:
    """Ramène une date en UTC "aware".

    SQLite restitue les colonnes `DateTime(timezone=True)` sans tzinfo : on
    considère alors que la valeur stockée est déjà en UTC.
    """

    if valeur is None:
        return None
    if valeur.tzinfo is None:
        return valeur.replace(tzinfo=timezone.utc)
    return valeur.astimezone(timezone.utc)
