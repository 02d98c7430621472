class RecipeBlogError(Exception):
    """Base class for errors raised by the recipe store and upload pipeline."""


class NotFound(RecipeBlogError):
    def __init__(self, recipe_id):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class ValidationFailure(RecipeBlogError):
    """Required input is missing or unusable."""


class PersistenceFailure(RecipeBlogError):
    """The database rejected a write; the transaction was rolled back."""


class UploadFailure(RecipeBlogError):
    """Image compression or storage failed."""
