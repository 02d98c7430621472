from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IngredientBase(BaseModel):
    name: str = Field(..., json_schema_extra={"example": "돼지고기"})
    amount: str = Field(..., json_schema_extra={"example": "200g"})


class Ingredient(IngredientBase):
    order: int

    model_config = ConfigDict(from_attributes=True)


class Step(BaseModel):
    instruction: str
    order: int

    model_config = ConfigDict(from_attributes=True)


class RecipeBase(BaseModel):
    title: str = Field(..., json_schema_extra={"example": "김치찌개 끓이기"})
    cover_image: Optional[str] = None
    difficulty: int = Field(3, ge=1, le=5)
    category: Optional[str] = Field(
        None, json_schema_extra={"example": "국/찌개"}
    )
    tip: Optional[str] = None


class RecipeCreate(RecipeBase):
    ingredients: List[IngredientBase] = Field(
        default_factory=list,
        json_schema_extra={"example": [{"name": "김치", "amount": "1/4포기"}]},
    )
    steps: List[str] = Field(
        default_factory=list,
        json_schema_extra={"example": ["김치를 볶는다", "물을 붓고 끓인다"]},
    )
    tags: List[str] = Field(
        default_factory=list, json_schema_extra={"example": ["국물", "겨울"]}
    )


class Recipe(RecipeBase):
    id: int
    slug: str
    created_at: datetime
    ingredients: List[Ingredient] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("tags", mode="before")
    @classmethod
    def tag_names(cls, v):
        # ORM rows carry RecipeTag associations; expose just the names
        return [getattr(getattr(t, "tag", None), "name", t) for t in v or []]


class Tag(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class Category(BaseModel):
    name: str
    order: int


class Count(BaseModel):
    name: str
    count: int


class BlogPage(BaseModel):
    recipes: List[Recipe]
    total: int
    categories: List[Count]
    tags: List[Count]


class UploadResult(BaseModel):
    url: str
