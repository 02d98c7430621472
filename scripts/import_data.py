import json
import logging
from pathlib import Path

from pydantic import ValidationError

from recipe_blog import crud, schemas
from recipe_blog.db import SessionLocal, init_db
from recipe_blog.errors import RecipeBlogError
from recipe_blog.slug import slugify

logger = logging.getLogger("import_data")


def load_recipes(path):
    """Load recipes from a JSON file and return a list of dicts."""
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    init_db()
    p = Path(__file__).resolve().parents[1] / 'data' / 'recipes.json'
    data = load_recipes(p)
    if not data:
        logger.warning('no recipes found at %s', p)
        return
    db = SessionLocal()
    added = 0
    try:
        existing = {r.slug for r in crud.get_recipes(db)}
        for r in data:
            try:
                recipe = schemas.RecipeCreate(**r)
            except ValidationError as e:
                logger.warning('skipping %r: %s', r.get('title'), e.errors()[0]['msg'])
                continue
            if slugify(recipe.title) in existing:
                continue
            try:
                created = crud.create_recipe(db, recipe)
            except RecipeBlogError as e:
                logger.warning('skipping %r: %s', recipe.title, e)
                continue
            existing.add(created.slug)
            added += 1
    finally:
        db.close()
    logger.info('Imported %d recipes', added)


if __name__ == '__main__':
    main()
