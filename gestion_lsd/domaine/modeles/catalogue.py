from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.domaine.enums.types import TypeArticle
from gestion_lsd.domaine.modeles.base import ModeleHorodate, type_enum


class Ingredient(ModeleHorodate):
    __tablename__ = "ingredient"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    nom: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)

    quantite: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unite_nom: Mapped[str] = mapped_column(String(50), nullable=False, default="gramme")
    unite_symbole: Mapped[str] = mapped_column(String(10), nullable=False, default="g")

    # valeurs énergétiques pour 100 g
    cal_100: Mapped[float | None] = mapped_column(Float, nullable=True)
    kj_100: Mapped[float | None] = mapped_column(Float, nullable=True)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Menu(ModeleHorodate):
    __tablename__ = "menu"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    prix: Mapped[int] = mapped_column(Integer, nullable=False, default=2000)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    ingredients: Mapped[list["MenuIngredient"]] = relationship(
        "MenuIngredient",
        back_populates="menu",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class MenuIngredient(ModeleHorodate):
    __tablename__ = "menu_ingredient"
    __table_args__ = (
        UniqueConstraint("menu_id", "ingredient_id", name="uq_menu_ingredient_menu_ingredient"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    menu_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("menu.id"), nullable=False, index=True)
    ingredient_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("ingredient.id"), nullable=False)

    menu: Mapped[Menu] = relationship("Menu", back_populates="ingredients")
    ingredient: Mapped[Ingredient] = relationship("Ingredient", lazy="joined")


class Boisson(ModeleHorodate):
    """Boisson vendue à l’unité.

    Seule entité du catalogue supprimable physiquement.
    """

    __tablename__ = "boisson"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    prix: Mapped[int] = mapped_column(Integer, nullable=False, default=1000)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class MenuCompose(ModeleHorodate):
    """Formule : plusieurs menus / boissons vendus ensemble à un prix propre."""

    __tablename__ = "menu_compose"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    prix: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    contenu: Mapped[list["ElementMenuCompose"]] = relationship(
        "ElementMenuCompose",
        back_populates="menu_compose",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ElementMenuCompose.denomination",
    )


class ElementMenuCompose(ModeleHorodate):
    __tablename__ = "element_menu_compose"
    __table_args__ = (
        UniqueConstraint(
            "menu_compose_id", "type_article", "article_id", name="uq_element_menu_compose_article"
        ),
        CheckConstraint("quantite >= 1", name="ck_element_menu_compose_quantite"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    menu_compose_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("menu_compose.id"), nullable=False, index=True)

    type_article: Mapped[TypeArticle] = mapped_column(type_enum(TypeArticle, "type_article"), nullable=False)
    # pas de FK : l’article peut être un menu ou une boisson
    article_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False)
    quantite: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    menu_compose: Mapped[MenuCompose] = relationship("MenuCompose", back_populates="contenu")


class Supplement(ModeleHorodate):
    """Supplément (sauce, accompagnement…) rangé par groupe. Prix 0 = gratuit."""

    __tablename__ = "supplement"
    __table_args__ = (UniqueConstraint("denomination", "groupe", name="uq_supplement_denomination_groupe"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False)
    groupe: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    prix: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def est_gratuit(self) -> bool:
        return self.prix == 0
