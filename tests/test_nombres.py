from __future__ import annotations

from decimal import Decimal

import pytest

from gestion_lsd.core.nombres import arrondir


@pytest.mark.parametrize(
    ("valeur", "decimales", "attendu"),
    [
        (1000.5, 0, 1001),
        (2.5, 0, 3),
        (-2.5, 0, -2),
        (12.25, 1, 12.3),
        (-12.25, 1, -12.2),
        (Decimal("122.45"), 1, 122.5),
        (0, 1, 0.0),
    ],
)
def test_arrondir_demie_vers_le_haut(valeur, decimales: int, attendu) -> None:
    assert arrondir(valeur, decimales) == attendu


def test_arrondir_type_retour() -> None:
    assert isinstance(arrondir(1350.0), int)
    assert isinstance(arrondir(1350, 1), float)
