"""Editable draft for the admin recipe form.

A :class:`RecipeDraft` is immutable; every edit goes through one of the
update functions below and yields a new draft. :class:`RecipeFormController`
holds the current draft and talks to the JSON API.
"""
import logging
from typing import NamedTuple, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import schemas
from .config import settings
from .errors import UploadFailure
from .images import compress_image

logger = logging.getLogger(__name__)

MSG_CREATED = "레시피가 저장되었습니다!"
MSG_UPDATED = "레시피가 수정되었습니다!"
MSG_SAVE_FAILED = "저장 실패"
MSG_ERROR = "오류 발생"
MSG_LOAD_FAILED = "레시피를 불러오는데 실패했습니다."
MSG_UPLOAD_FAILED = "이미지 업로드에 실패했습니다."


class IngredientRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    amount: str = ""


class RecipeDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    cover_image: str = ""
    difficulty: int = Field(3, ge=1, le=5)
    category: str = ""
    ingredients: Tuple[IngredientRow, ...] = (IngredientRow(),)
    steps: Tuple[str, ...] = ("",)
    tags: Tuple[str, ...] = ()
    tip: str = ""


def _replace(draft: RecipeDraft, **changes) -> RecipeDraft:
    # Revalidates, so a rejected value never reaches the stored draft
    return RecipeDraft.model_validate({**draft.model_dump(), **changes})


def set_field(draft: RecipeDraft, field: str, value) -> RecipeDraft:
    if field not in ("title", "cover_image", "difficulty", "category", "tip"):
        raise ValueError(f"not a scalar draft field: {field}")
    return _replace(draft, **{field: value})


def add_ingredient(draft: RecipeDraft) -> RecipeDraft:
    return draft.model_copy(update={"ingredients": draft.ingredients + (IngredientRow(),)})


def remove_ingredient(draft: RecipeDraft, index: int) -> RecipeDraft:
    rows = tuple(row for i, row in enumerate(draft.ingredients) if i != index)
    return draft.model_copy(update={"ingredients": rows})


def update_ingredient(draft: RecipeDraft, index: int, field: str, value: str) -> RecipeDraft:
    if field not in ("name", "amount"):
        raise ValueError(f"not an ingredient field: {field}")
    rows = [row.model_dump() for row in draft.ingredients]
    rows[index][field] = value
    return _replace(draft, ingredients=rows)


def add_step(draft: RecipeDraft) -> RecipeDraft:
    return draft.model_copy(update={"steps": draft.steps + ("",)})


def remove_step(draft: RecipeDraft, index: int) -> RecipeDraft:
    steps = tuple(s for i, s in enumerate(draft.steps) if i != index)
    return draft.model_copy(update={"steps": steps})


def update_step(draft: RecipeDraft, index: int, value: str) -> RecipeDraft:
    steps = list(draft.steps)
    steps[index] = value
    return _replace(draft, steps=steps)


def add_tag(draft: RecipeDraft, tag: str) -> RecipeDraft:
    tag = tag.strip()
    if not tag or tag in draft.tags:
        return draft
    return draft.model_copy(update={"tags": draft.tags + (tag,)})


def remove_tag(draft: RecipeDraft, tag: str) -> RecipeDraft:
    return draft.model_copy(update={"tags": tuple(t for t in draft.tags if t != tag)})


def to_payload(draft: RecipeDraft) -> schemas.RecipeCreate:
    """Build the request body, dropping incomplete ingredient rows and blank steps."""
    return schemas.RecipeCreate(
        title=draft.title,
        cover_image=draft.cover_image or None,
        difficulty=draft.difficulty,
        category=draft.category or None,
        tip=draft.tip or None,
        ingredients=[
            schemas.IngredientBase(name=row.name, amount=row.amount)
            for row in draft.ingredients
            if row.name and row.amount
        ],
        steps=[s for s in draft.steps if s.strip()],
        tags=list(draft.tags),
    )


def from_recipe(data: dict) -> RecipeDraft:
    """Build a draft from a recipe as returned by ``GET /api/recipes/{id}``."""
    return RecipeDraft(
        title=data["title"],
        cover_image=data.get("cover_image") or "",
        difficulty=data.get("difficulty") or 3,
        category=data.get("category") or "",
        ingredients=tuple(
            IngredientRow(name=i["name"], amount=i["amount"]) for i in data["ingredients"]
        ),
        steps=tuple(s["instruction"] for s in data["steps"]),
        tags=tuple(data["tags"]),
        tip=data.get("tip") or "",
    )


class FormResult(NamedTuple):
    ok: bool
    message: Optional[str]
    recipe: Optional[dict] = None


class RecipeFormController:
    """Drives the create/edit form against the JSON API.

    ``client`` is any :class:`httpx.Client` pointed at the site root; in tests
    this is FastAPI's ``TestClient``.
    """

    def __init__(self, client: httpx.Client, recipe_id: Optional[int] = None):
        self.client = client
        self.recipe_id = recipe_id
        self.draft = RecipeDraft()
        self.loading = False

    @property
    def is_edit_mode(self) -> bool:
        return self.recipe_id is not None

    def edit(self, update, *args) -> RecipeDraft:
        self.draft = update(self.draft, *args)
        return self.draft

    def load(self) -> FormResult:
        if not self.is_edit_mode:
            return FormResult(True, None)
        try:
            res = self.client.get(f"/api/recipes/{self.recipe_id}")
            res.raise_for_status()
            data = res.json()
            self.draft = from_recipe(data)
        except (httpx.HTTPError, KeyError, ValueError):
            logger.exception("Failed to fetch recipe %s", self.recipe_id)
            return FormResult(False, MSG_LOAD_FAILED)
        return FormResult(True, None, data)

    def submit(self) -> FormResult:
        if self.loading:
            # a submission is already in flight
            return FormResult(False, None)
        self.loading = True
        try:
            body = to_payload(self.draft).model_dump()
            if self.is_edit_mode:
                res = self.client.put(f"/api/recipes/{self.recipe_id}", json=body)
            else:
                res = self.client.post("/api/recipes", json=body)
            if res.is_success:
                data = res.json()
                if not self.is_edit_mode:
                    self.recipe_id = data["id"]
                    return FormResult(True, MSG_CREATED, data)
                return FormResult(True, MSG_UPDATED, data)
            logger.warning("Save rejected (%s): %s", res.status_code, res.text)
            return FormResult(False, MSG_SAVE_FAILED)
        except ValidationError as e:
            logger.warning("Draft rejected: %s", e)
            return FormResult(False, MSG_SAVE_FAILED)
        except (httpx.HTTPError, ValueError):
            logger.exception("Recipe save error")
            return FormResult(False, MSG_ERROR)
        finally:
            self.loading = False

    def select_image(self, data: bytes, filename: str) -> FormResult:
        """Compress and upload a cover image, replacing the current one."""
        try:
            compressed = compress_image(
                data,
                max_size_mb=settings.UPLOAD_MAX_MB,
                max_edge=settings.UPLOAD_MAX_EDGE,
            )
            stem = filename.rsplit(".", 1)[0] or "cover"
            form = {"previous_url": self.draft.cover_image} if self.draft.cover_image else {}
            res = self.client.post(
                "/api/upload",
                files={"file": (f"{stem}.jpg", compressed, "image/jpeg")},
                data=form,
            )
            res.raise_for_status()
            url = res.json()["url"]
        except (UploadFailure, httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("Image upload failed: %s", e)
            return FormResult(False, MSG_UPLOAD_FAILED)
        self.draft = set_field(self.draft, "cover_image", url)
        return FormResult(True, None, {"url": url})
