"""Transaction templates package."""

from fintrack.templates.catalog import TemplateCatalog

__all__ = ["TemplateCatalog"]
