"""
CIVIC REPORTS - Department Routing

Maps a report category to the municipal department that owns it.
"""

DEFAULT_DEPARTMENT = "General Services"

DEPARTMENT_BY_CATEGORY = {
    "pothole": "Public Works",
    "trash": "Public Works",
    "streetlight": "Transportation",
    "graffiti": "Community Services",
    "water": "Utilities",
    "other": DEFAULT_DEPARTMENT,
}


def route(category) -> str:
    """Return the responsible department. Unknown categories fall back to General Services."""
    key = getattr(category, "value", category)
    return DEPARTMENT_BY_CATEGORY.get(key, DEFAULT_DEPARTMENT)
