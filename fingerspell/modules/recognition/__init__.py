"""Letter recognition: rules, templates and temporal stabilization."""
from .rule_classifier import RuleClassifier, RuleThresholds
from .template_store import TemplateStore
from .stability_filter import StabilityFilter, STABLE_REQUIRED
from .seed_templates import seed_templates

__all__ = [
    "RuleClassifier",
    "RuleThresholds",
    "TemplateStore",
    "StabilityFilter",
    "STABLE_REQUIRED",
    "seed_templates",
]
