# Categories offered by the admin form, in display order.
# Recipes may still carry a free-text category outside this list.
CATEGORIES = [
    "국/찌개",
    "볶음",
    "무침",
    "조림",
    "구이",
    "튀김",
    "찜",
    "전/부침",
    "밥/죽/면",
    "디저트",
    "기타",
]


def list_categories():
    return [{"name": name, "order": i + 1} for i, name in enumerate(CATEGORIES)]


def normalize_category(category):
    if category is None:
        return None
    category = category.strip()
    return category or None
