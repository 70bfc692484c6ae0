"""Status categories.

Issue tracker status names are free text and vary between projects. Every
analytical view works on the category a status belongs to instead, looked
up through a :class:`StatusCategoryTable` built from configuration.
"""

from enum import Enum

from .common_constants import DEFAULT_STATUS_CATEGORIES


class StatusCategory(Enum):
    """Category of an issue status."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    TODO = "todo"
    DISCARDED = "discarded"

    @classmethod
    def from_string(cls, value):
        """Parse a category name such as ``In Progress`` or ``in_progress``."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        for category in cls:
            if category.value == normalized:
                return category
        raise ValueError(f"Unknown status category: {value}")


class StatusCategoryTable:
    """Case-insensitive mapping of status names to categories."""

    def __init__(self, mapping=None, default=StatusCategory.TODO):
        if mapping is None:
            mapping = DEFAULT_STATUS_CATEGORIES
        self.default = StatusCategory.from_string(default)
        self._table = {
            str(status).strip().lower(): StatusCategory.from_string(category)
            for status, category in mapping.items()
        }

    @classmethod
    def from_settings(cls, settings):
        """Build the table from the ``settings`` section of the options."""
        return cls(
            settings.get("status_categories", DEFAULT_STATUS_CATEGORIES),
            settings.get("default_status_category", StatusCategory.TODO.value),
        )

    def categorize(self, status):
        if status is None:
            return self.default
        return self._table.get(str(status).strip().lower(), self.default)

    def is_completed(self, status):
        return self.categorize(status) is StatusCategory.COMPLETED

    def is_in_progress(self, status):
        return self.categorize(status) is StatusCategory.IN_PROGRESS

    def __contains__(self, status):
        return str(status).strip().lower() in self._table

    def __len__(self):
        return len(self._table)
