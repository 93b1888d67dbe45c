"""slopecheck — pipe slope compliance checking for building models."""

__version__ = "1.0.0"

from slopecheck.api.facade import SlopeCheck
from slopecheck.compliance.engine import SlopeComplianceEngine, classify
from slopecheck.compliance.errors import InvalidArgumentError, RuleInputError
from slopecheck.compliance.report import ComplianceReport
from slopecheck.compliance.rules import ComplianceResult, SlopeRule, SlopeUnit, TieBreak
from slopecheck.compliance.ruleset import RuleSet, parse_rule_rows
from slopecheck.models.pipe import PipeRecord
from slopecheck.settings import Settings, load_settings

__all__ = [
    "__version__",
    # Facade
    "SlopeCheck",
    # Engine
    "ComplianceReport",
    "ComplianceResult",
    "InvalidArgumentError",
    "PipeRecord",
    "RuleInputError",
    "RuleSet",
    "SlopeComplianceEngine",
    "SlopeRule",
    "SlopeUnit",
    "TieBreak",
    "classify",
    "parse_rule_rows",
    # Configuration
    "Settings",
    "load_settings",
]
