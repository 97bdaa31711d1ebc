from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext


ALGORITHME_JWT = "HS256"

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hasher_mot_de_passe(mot_de_passe: str) -> str:
    return _pwd_context.hash(mot_de_passe)


def verifier_mot_de_passe(mot_de_passe: str, mot_de_passe_hash: str) -> bool:
    return _pwd_context.verify(mot_de_passe, mot_de_passe_hash)


def creer_token_acces(
    *,
    secret: str,
    sujet: str,
    duree_minutes: int,
    roles: list[str],
    maintenant: datetime | None = None,
) -> str:
    """Token d’accès signé.

    Claims : `sub` (id utilisateur), `iat`, `exp`, `roles` (codes de rôle au
    moment du login, informatif : les contrôles relisent la base).
    """

    emis_le = maintenant or datetime.now(tz=timezone.utc)
    expire_le = emis_le + timedelta(minutes=duree_minutes)

    payload = {
        "sub": sujet,
        "iat": int(emis_le.timestamp()),
        "exp": int(expire_le.timestamp()),
        "roles": sorted(roles),
    }

    return jwt.encode(payload, secret, algorithm=ALGORITHME_JWT)


def decoder_token_acces(token: str, *, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=[ALGORITHME_JWT])
