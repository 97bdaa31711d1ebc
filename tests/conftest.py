from __future__ import annotations

import os

# À positionner avant tout import de gestion_lsd : les paramètres sont lus à l’import.
os.environ.setdefault("URL_BASE_DONNEES", "sqlite+aiosqlite:///./tests_gestion_lsd.sqlite3")
os.environ.setdefault("JWT_SECRET", "secret-de-test")
os.environ.setdefault("AUDIT_HTTP_ACTIF", "false")

from collections.abc import AsyncIterator

import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.domaine.modeles import BaseModele  # importe aussi tous les modèles


@pytest_asyncio.fixture
async def moteur_test() -> AsyncIterator[AsyncEngine]:
    """Moteur de base de données pour les tests.

    Scope function pour éviter les problèmes de boucle asyncio :
    un moteur async ne doit jamais être partagé entre plusieurs event loops.
    """

    url = parametres_application.url_base_donnees
    moteur = create_async_engine(url, pool_pre_ping=True)

    async with moteur.begin() as connexion:
        # Repartir d’un schéma propre à chaque test
        if url.startswith("postgresql"):
            # drop_all peut deadlocker sous PostgreSQL si des connexions précédentes
            # sont encore en teardown : on repart d’un schéma vide.
            await connexion.execute(text("DROP SCHEMA public CASCADE"))
            await connexion.execute(text("CREATE SCHEMA public"))
            await connexion.execute(text("GRANT ALL ON SCHEMA public TO CURRENT_USER"))
            await connexion.execute(text("GRANT ALL ON SCHEMA public TO public"))
        else:
            await connexion.run_sync(BaseModele.metadata.drop_all)
        await connexion.run_sync(BaseModele.metadata.create_all)

    try:
        yield moteur
    finally:
        await moteur.dispose()


@pytest_asyncio.fixture
async def session_test(moteur_test: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Session SQLAlchemy async isolée par test."""

    fabrique = async_sessionmaker(
        bind=moteur_test,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with fabrique() as session:
        try:
            yield session
        finally:
            # Sécurité : rollback si le test a oublié de commit
            await session.rollback()
