# flake8: noqa

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from . import crud, schemas
from .categories import list_categories
from .config import settings
from .db import SessionLocal, init_db
from .errors import NotFound, UploadFailure, ValidationFailure
from .filters import FilterState, category_counts, tag_counts
from .images import remove_upload, save_upload
from .sitemap import build_sitemap

logging.basicConfig(
    level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB once at startup
    init_db()
    yield


app = FastAPI(title="Recipe Blog", lifespan=lifespan)
templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR))

# Uploaded cover images are served from static/uploads
settings.upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/static", StaticFiles(directory=str(settings.STATIC_DIR)), name="static")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def error(message: str, status_code: int):
    return JSONResponse(status_code=status_code, content={"error": message})


def serialize(db_recipes):
    return [schemas.Recipe.model_validate(r) for r in db_recipes]


# ---------------------------------------------------------------------------
# JSON API used by the admin form
# ---------------------------------------------------------------------------

api = APIRouter(prefix="/api")


@api.get("/recipes", response_model=List[schemas.Recipe])
def list_recipes(db: Session = Depends(get_db)):
    try:
        return serialize(crud.get_recipes(db))
    except Exception:
        logger.exception("Recipe list error")
        return error("Failed to fetch recipes", 500)


@api.post("/recipes", response_model=schemas.Recipe, status_code=201)
def create_recipe(recipe: schemas.RecipeCreate, db: Session = Depends(get_db)):
    try:
        return schemas.Recipe.model_validate(crud.create_recipe(db, recipe))
    except ValidationFailure as e:
        return error(str(e), 400)
    except Exception:
        logger.exception("Recipe creation error")
        return error("Failed to create recipe", 500)


@api.get("/recipes/{recipe_id}", response_model=schemas.Recipe)
def get_recipe(recipe_id: int, db: Session = Depends(get_db)):
    try:
        return schemas.Recipe.model_validate(crud.get_recipe(db, recipe_id))
    except NotFound:
        return error("Recipe not found", 404)
    except Exception:
        logger.exception("Recipe fetch error")
        return error("Failed to fetch recipe", 500)


@api.put("/recipes/{recipe_id}", response_model=schemas.Recipe)
def update_recipe(
    recipe_id: int, recipe: schemas.RecipeCreate, db: Session = Depends(get_db)
):
    try:
        db_recipe = crud.update_recipe(db, recipe_id, recipe)
        return schemas.Recipe.model_validate(db_recipe)
    except NotFound:
        return error("Recipe not found", 404)
    except ValidationFailure as e:
        return error(str(e), 400)
    except Exception:
        logger.exception("Recipe update error")
        return error("Failed to update recipe", 500)


@api.delete("/recipes/{recipe_id}")
def delete_recipe(recipe_id: int, db: Session = Depends(get_db)):
    try:
        crud.delete_recipe(db, recipe_id)
    except NotFound:
        return error("Recipe not found", 404)
    except Exception:
        logger.exception("Recipe delete error")
        return error("Failed to delete recipe", 500)
    return {"message": "Recipe deleted"}


@api.get("/tags", response_model=List[schemas.Tag])
def list_tags(db: Session = Depends(get_db)):
    try:
        return [schemas.Tag.model_validate(t) for t in crud.get_tags(db)]
    except Exception:
        logger.exception("Tag list error")
        return error("Failed to fetch tags", 500)


@api.get("/categories", response_model=List[schemas.Category])
def categories():
    return list_categories()


@api.post("/upload", response_model=schemas.UploadResult)
def upload(file: UploadFile = File(...), previous_url: Optional[str] = Form(None)):
    upload_dir = settings.upload_dir
    try:
        url = save_upload(file.file.read(), file.filename or "", upload_dir)
    except UploadFailure as e:
        logger.warning("Upload rejected: %s", e)
        return error(str(e), 400)
    except Exception:
        logger.exception("Upload error")
        return error("Failed to upload image", 500)
    if previous_url:
        # the new image is already stored; a stale old file is not fatal
        try:
            remove_upload(previous_url, upload_dir)
        except OSError:
            logger.warning("Could not remove previous upload %s", previous_url, exc_info=True)
    return {"url": url}


app.include_router(api)


# ---------------------------------------------------------------------------
# Public pages (JSON; rendering happens client-side)
# ---------------------------------------------------------------------------

@app.get("/", response_model=List[schemas.Recipe])
def home(limit: int = Query(12, ge=1), db: Session = Depends(get_db)):
    return serialize(crud.get_recipes(db)[:limit])


@app.get("/blog", response_model=schemas.BlogPage)
def blog(
    category: Optional[str] = None,
    tag: Optional[str] = None,
    difficulty: Optional[float] = None,
    db: Session = Depends(get_db),
):
    recipes = serialize(crud.get_recipes(db))
    state = FilterState(category=category, tag=tag).select_difficulty(difficulty)
    filtered = state.apply(recipes)
    return {
        "recipes": filtered,
        "total": len(recipes),
        "categories": category_counts(recipes),
        "tags": tag_counts(recipes),
    }


@app.get("/recipes/{slug}", response_model=schemas.Recipe)
def recipe_detail(slug: str, db: Session = Depends(get_db)):
    db_recipe = crud.find_by_slug(db, slug)
    if db_recipe is None:
        return error("Recipe not found", 404)
    return schemas.Recipe.model_validate(db_recipe)


@app.get("/sitemap.xml")
def sitemap(request: Request, db: Session = Depends(get_db)):
    entries = build_sitemap(crud.get_recipes(db), settings.BASE_URL)
    return templates.TemplateResponse(
        request, "sitemap.xml", {"entries": entries}, media_type="application/xml"
    )
