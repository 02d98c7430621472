import logging
from urllib.parse import unquote

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .categories import normalize_category
from .errors import NotFound, PersistenceFailure, ValidationFailure
from .slug import slugify

logger = logging.getLogger(__name__)

# Dialects with INSERT .. ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


def _with_children(query):
    return query.options(
        selectinload(models.Recipe.ingredients),
        selectinload(models.Recipe.steps),
        selectinload(models.Recipe.tags).joinedload(models.RecipeTag.tag),
    )


def get_recipe(db: Session, recipe_id: int):
    db_recipe = (
        _with_children(db.query(models.Recipe))
        .filter(models.Recipe.id == recipe_id)
        .first()
    )
    if db_recipe is None:
        raise NotFound(recipe_id)
    return db_recipe


def get_recipes(db: Session):
    return (
        _with_children(db.query(models.Recipe))
        .order_by(models.Recipe.created_at.desc(), models.Recipe.id.desc())
        .all()
    )


def find_by_slug(db: Session, slug: str):
    """Return the first recipe (newest first) whose slug matches, or None."""
    wanted = unquote(slug)
    for db_recipe in get_recipes(db):
        if db_recipe.slug == wanted:
            return db_recipe
    return None


def get_tags(db: Session):
    return db.query(models.Tag).order_by(models.Tag.name.asc()).all()


def upsert_tag(db: Session, name: str):
    insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if insert is not None:
        stmt = (
            insert(models.Tag)
            .values(name=name)
            .on_conflict_do_nothing(index_elements=["name"])
        )
        db.execute(stmt)
        return db.query(models.Tag).filter(models.Tag.name == name).one()

    tag = db.query(models.Tag).filter(models.Tag.name == name).first()
    if tag is None:
        tag = models.Tag(name=name)
        db.add(tag)
        db.flush()
    return tag


def _clean_tag_names(names):
    seen = []
    for name in names or []:
        name = name.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def _apply(db: Session, db_recipe, recipe: schemas.RecipeCreate):
    title = (recipe.title or "").strip()
    if not title:
        raise ValidationFailure("title is required")
    slug = slugify(title)
    if not slug:
        raise ValidationFailure(f"title has no usable characters for a slug: {title!r}")

    db_recipe.title = title
    db_recipe.slug = slug
    db_recipe.cover_image = recipe.cover_image or None
    db_recipe.difficulty = recipe.difficulty or 3
    db_recipe.category = normalize_category(recipe.category)
    db_recipe.tip = recipe.tip or None

    db_recipe.ingredients = [
        models.Ingredient(name=ing.name, amount=ing.amount, order=i)
        for i, ing in enumerate(recipe.ingredients)
    ]
    db_recipe.steps = [
        models.Step(instruction=step, order=i) for i, step in enumerate(recipe.steps)
    ]
    db_recipe.tags = [
        models.RecipeTag(tag=upsert_tag(db, name))
        for name in _clean_tag_names(recipe.tags)
    ]


def create_recipe(db: Session, recipe: schemas.RecipeCreate):
    db_recipe = models.Recipe()
    try:
        _apply(db, db_recipe, recipe)
        db.add(db_recipe)
        db.commit()
    except ValidationFailure:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure("could not create recipe") from e
    logger.info("Created recipe %s (%s)", db_recipe.id, db_recipe.slug)
    return get_recipe(db, db_recipe.id)


def update_recipe(db: Session, recipe_id: int, recipe: schemas.RecipeCreate):
    db_recipe = get_recipe(db, recipe_id)
    try:
        # Drop old children first so re-added tag rows don't clash on the
        # (recipe_id, tag_id) key; the commit below covers both halves.
        db_recipe.ingredients.clear()
        db_recipe.steps.clear()
        db_recipe.tags.clear()
        db.flush()
        _apply(db, db_recipe, recipe)
        db.commit()
    except ValidationFailure:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure(f"could not update recipe {recipe_id}") from e
    logger.info("Updated recipe %s (%s)", recipe_id, db_recipe.slug)
    return get_recipe(db, recipe_id)


def delete_recipe(db: Session, recipe_id: int):
    db_recipe = get_recipe(db, recipe_id)
    try:
        db.delete(db_recipe)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure(f"could not delete recipe {recipe_id}") from e
    logger.info("Deleted recipe %s", recipe_id)
    return True
