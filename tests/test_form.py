import io

import pytest
from PIL import Image
from pydantic import ValidationError

from recipe_blog import form
from recipe_blog.form import RecipeDraft, RecipeFormController


def test_draft_defaults():
    draft = RecipeDraft()
    assert draft.difficulty == 3
    assert len(draft.ingredients) == 1 and draft.ingredients[0].name == ""
    assert draft.steps == ("",)
    assert draft.tags == ()


def test_draft_is_immutable():
    draft = RecipeDraft()
    with pytest.raises(ValidationError):
        draft.title = "x"

    edited = form.set_field(draft, "title", "제육볶음")
    assert edited.title == "제육볶음"
    assert draft.title == ""


def test_row_edits():
    draft = form.add_ingredient(RecipeDraft())
    draft = form.update_ingredient(draft, 0, "name", "양파")
    draft = form.update_ingredient(draft, 0, "amount", "1개")
    draft = form.update_ingredient(draft, 1, "name", "마늘")
    assert [(i.name, i.amount) for i in draft.ingredients] == [("양파", "1개"), ("마늘", "")]

    draft = form.remove_ingredient(draft, 0)
    assert [i.name for i in draft.ingredients] == ["마늘"]

    draft = form.add_step(form.update_step(RecipeDraft(), 0, "썬다"))
    draft = form.update_step(draft, 1, "볶는다")
    assert draft.steps == ("썬다", "볶는다")
    assert form.remove_step(draft, 0).steps == ("볶는다",)

    with pytest.raises(ValueError):
        form.update_ingredient(draft, 0, "weight", "1")


def test_tags_trimmed_and_unique():
    draft = form.add_tag(RecipeDraft(), "  국물 ")
    draft = form.add_tag(draft, "국물")
    draft = form.add_tag(draft, "   ")
    draft = form.add_tag(draft, "겨울")
    assert draft.tags == ("국물", "겨울")
    assert form.remove_tag(draft, "국물").tags == ("겨울",)


def test_payload_strips_incomplete_rows():
    draft = RecipeDraft(
        title="김치찌개 끓이기",
        ingredients=(
            form.IngredientRow(name="김치", amount="1/4포기"),
            form.IngredientRow(name="두부", amount=""),
            form.IngredientRow(name="", amount="1큰술"),
        ),
        steps=("볶는다", "  ", "", "끓인다"),
    )
    payload = form.to_payload(draft)
    assert [(i.name, i.amount) for i in payload.ingredients] == [("김치", "1/4포기")]
    assert payload.steps == ["볶는다", "끓인다"]
    assert payload.cover_image is None
    assert payload.category is None
    assert payload.tip is None


def fill(controller, title="김치찌개 끓이기"):
    controller.edit(form.set_field, "title", title)
    controller.edit(form.update_ingredient, 0, "name", "김치")
    controller.edit(form.update_ingredient, 0, "amount", "1/4포기")
    controller.edit(form.update_step, 0, "끓인다")
    controller.edit(form.add_tag, "국물")


def test_controller_create_then_edit(client):
    controller = RecipeFormController(client)
    fill(controller)
    result = controller.submit()
    assert result.ok
    assert result.message == form.MSG_CREATED
    assert result.recipe["slug"] == "김치찌개-끓이기"
    assert controller.is_edit_mode

    editor = RecipeFormController(client, recipe_id=result.recipe["id"])
    loaded = editor.load()
    assert loaded.ok
    assert editor.draft.title == "김치찌개 끓이기"
    assert editor.draft.tags == ("국물",)
    assert editor.draft.ingredients[0].amount == "1/4포기"

    editor.edit(form.set_field, "category", "국/찌개")
    editor.edit(form.add_step)
    editor.edit(form.update_step, 1, "두부를 넣는다")
    result = editor.submit()
    assert result.ok
    assert result.message == form.MSG_UPDATED
    assert result.recipe["category"] == "국/찌개"
    assert [s["instruction"] for s in result.recipe["steps"]] == ["끓인다", "두부를 넣는다"]


def test_controller_reports_failures(client):
    controller = RecipeFormController(client)
    result = controller.submit()  # blank title
    assert not result.ok
    assert result.message == form.MSG_SAVE_FAILED

    missing = RecipeFormController(client, recipe_id=999)
    result = missing.load()
    assert not result.ok
    assert result.message == form.MSG_LOAD_FAILED


def test_controller_ignores_submit_while_pending(client):
    controller = RecipeFormController(client)
    fill(controller)
    controller.loading = True
    result = controller.submit()
    assert not result.ok and result.message is None
    assert client.get("/api/recipes").json() == []


def _photo(size=(1600, 1200)):
    buf = io.BytesIO()
    Image.new("RGB", size, (180, 120, 60)).save(buf, format="PNG")
    return buf.getvalue()


def test_select_image_uploads_and_replaces(client):
    from recipe_blog.config import settings

    controller = RecipeFormController(client)
    result = controller.select_image(_photo(), "dinner.png")
    assert result.ok
    first = controller.draft.cover_image
    assert first.startswith("/static/uploads/") and first.endswith(".jpg")

    stored = settings.upload_dir / first.rsplit("/", 1)[1]
    assert max(Image.open(stored).size) <= 800

    result = controller.select_image(_photo((300, 200)), "second.png")
    assert result.ok
    assert controller.draft.cover_image != first
    assert not stored.exists()


def test_select_image_rejects_garbage(client):
    controller = RecipeFormController(client)
    result = controller.select_image(b"nope", "x.png")
    assert not result.ok
    assert result.message == form.MSG_UPLOAD_FAILED
    assert controller.draft.cover_image == ""


def test_edits_reject_invalid_values():
    with pytest.raises(ValidationError):
        form.set_field(RecipeDraft(), "difficulty", 7)
    with pytest.raises(ValidationError):
        form.update_step(RecipeDraft(), 0, None)
    with pytest.raises(ValidationError):
        form.update_ingredient(RecipeDraft(), 0, "amount", None)


def test_invalid_draft_does_not_lock_controller(client):
    controller = RecipeFormController(client)
    # bypass validation to hold a value the API would refuse
    controller.draft = RecipeDraft.model_construct(title="제육볶음", difficulty=7)

    result = controller.submit()
    assert not result.ok
    assert result.message == form.MSG_SAVE_FAILED
    assert controller.loading is False

    controller.edit(form.set_field, "difficulty", 3)
    result = controller.submit()
    assert result.ok
    assert result.message == form.MSG_CREATED


def test_select_image_handles_non_json_reply():
    import httpx

    def reply(request):
        return httpx.Response(200, text="<html>gateway</html>")

    with httpx.Client(transport=httpx.MockTransport(reply), base_url="http://test") as http:
        controller = RecipeFormController(http)
        result = controller.select_image(_photo((50, 40)), "x.png")
    assert not result.ok
    assert result.message == form.MSG_UPLOAD_FAILED
    assert controller.draft.cover_image == ""
