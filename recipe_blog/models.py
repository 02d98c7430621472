from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Recipe(Base):
    __tablename__ = "recipes"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    # not unique: two titles may normalize to the same slug
    slug = Column(String(255), index=True, nullable=False)
    cover_image = Column(String(500), nullable=True)
    difficulty = Column(Integer, nullable=False, default=3)
    category = Column(String(50), nullable=True)
    tip = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow, index=True)

    ingredients = relationship(
        "Ingredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="Ingredient.order",
    )
    steps = relationship(
        "Step",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="Step.order",
    )
    tags = relationship(
        "RecipeTag",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeTag.tag_id",
    )


class Ingredient(Base):
    __tablename__ = "ingredients"
    id = Column(Integer, primary_key=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    amount = Column(String(50), nullable=False)
    order = Column(Integer, nullable=False)

    recipe = relationship("Recipe", back_populates="ingredients")


class Step(Base):
    __tablename__ = "steps"
    id = Column(Integer, primary_key=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    instruction = Column(Text, nullable=False)
    order = Column(Integer, nullable=False)

    recipe = relationship("Recipe", back_populates="steps")


class Tag(Base):
    __tablename__ = "tags"
    id = Column(Integer, primary_key=True)
    name = Column(String(50), unique=True, index=True, nullable=False)


class RecipeTag(Base):
    __tablename__ = "recipe_tags"
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)

    recipe = relationship("Recipe", back_populates="tags")
    tag = relationship("Tag", lazy="joined")
