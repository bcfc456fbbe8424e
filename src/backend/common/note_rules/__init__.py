"""Rule engine that classifies and orders notes.

This package contains only domain logic:
- Inputs are one `RuleEvaluationContext` per note plus the loaded settings.
- No vault, filesystem, or network access lives here; adapters build contexts.
"""

from .config import (
    CompanionSettings,
    ConditionGroup,
    HideRule,
    IconColorRule,
    RuleCondition,
    SmartSortSettings,
    SortBucket,
    SortCriteria,
    SortSegmentRule,
    SortValueMapping,
    get_runtime_config,
    load_settings,
)
from .context import RuleEvaluationContext
from .engine import RuleEngine
from .models import (
    Backlink,
    ConditionSource,
    FileDescriptor,
    HideChanges,
    MatchMode,
    NoteEvaluation,
    Operator,
    RuleFieldResult,
    RuleRunReport,
    VisualRuleResult,
)
from .runner import NoteRulesRunner, settings_use_source

# Import built-in operators so they self-register with the global registry.
from . import operators as _builtin_operators  # noqa: F401
