"""Slope Compliance Engine — check pipe slopes against diameter rules."""

from slopecheck.compliance.engine import SlopeComplianceEngine, classify
from slopecheck.compliance.errors import InvalidArgumentError, RuleInputError
from slopecheck.compliance.report import ComplianceReport
from slopecheck.compliance.rules import ComplianceResult, SlopeRule, SlopeUnit, TieBreak
from slopecheck.compliance.ruleset import RuleSet, parse_rule_rows

__all__ = [
    "ComplianceReport",
    "ComplianceResult",
    "InvalidArgumentError",
    "RuleInputError",
    "RuleSet",
    "SlopeComplianceEngine",
    "SlopeRule",
    "SlopeUnit",
    "TieBreak",
    "classify",
    "parse_rule_rows",
]
