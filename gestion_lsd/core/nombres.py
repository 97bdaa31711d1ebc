from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal


def arrondir(valeur: float | int | Decimal, decimales: int = 0) -> float | int:
    """Arrondi « commercial » : la demie monte (vers +inf).

    `round()` arrondit au pair (12.25 -> 12.2) ; les montants et pourcentages
    affichés doivent donner 12.3, et -12.25 -> -12.2.

    Retourne un `int` si `decimales == 0`, sinon un `float`.
    """

    d = valeur if isinstance(valeur, Decimal) else Decimal(str(valeur))
    pas = Decimal(1).scaleb(-decimales)
    arrondi = ((d / pas) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR) * pas
    if decimales == 0:
        return int(arrondi)
    return float(arrondi)
