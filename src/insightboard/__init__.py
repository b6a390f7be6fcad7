"""InsightBoard: task dependency graph validation and completion propagation."""

from insightboard.config import VERSION

__version__ = VERSION
