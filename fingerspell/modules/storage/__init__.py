"""Template persistence."""
from .template_repository import TemplateRepository, TemplateFormatError

__all__ = ["TemplateRepository", "TemplateFormatError"]
