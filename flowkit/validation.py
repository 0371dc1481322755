"""Validation hooks for step outputs.

Supports regex, length, contains and external command validators. The entry
point never raises: every problem, including a malformed rule, comes back as a
failed ValidationResult.
"""

import logging
import re
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from config.types import FlowkitSettings
from flowkit.command_runner import DEFAULT_TIMEOUT, run_command_with_input
from flowkit.models import (
    ContainsRule,
    KNOWN_RULE_TYPES,
    RULE_CLASSES,
    ExternalCommandRule,
    LengthRule,
    RegexRule,
    ValidationResult,
    rule_adapter,
)
from flowkit.utils import log_with_context

logger = logging.getLogger(__name__)

EXTERNAL_COMMANDS_DISABLED_MESSAGE = (
    "External command validation is disabled (ALLOW_EXTERNAL_COMMANDS=false)"
)
UNKNOWN_VALIDATION_TYPE_MESSAGE = "Unknown validation type"
RuleInput = Union[RegexRule, LengthRule, ContainsRule, ExternalCommandRule, Mapping[str, Any]]


def _fail(rule: Any, default_message: str) -> ValidationResult:
    return ValidationResult(passed=False, error=rule.error_message or default_message)


def _validate_regex(output: str, rule: RegexRule) -> ValidationResult:
    try:
        pattern = re.compile(rule.rule)
    except re.error as e:
        return _fail(rule, f"Invalid regex pattern {rule.rule!r}: {e}")
    if not pattern.search(output):
        return _fail(rule, f"Output does not match pattern: {rule.rule}")
    return ValidationResult(passed=True)


def _validate_length(output: str, rule: LengthRule) -> ValidationResult:
    if len(output) < rule.rule:
        return _fail(
            rule, f"Output length {len(output)} is below minimum {rule.rule}"
        )
    return ValidationResult(passed=True)


def _validate_contains(output: str, rule: ContainsRule) -> ValidationResult:
    if rule.rule not in output:
        return _fail(rule, f'Output does not contain required text: "{rule.rule}"')
    return ValidationResult(passed=True)


async def _validate_external_command(
    output: str, rule: ExternalCommandRule, settings: FlowkitSettings
) -> ValidationResult:
    if not settings.allow_external_commands:
        return ValidationResult(passed=False, error=EXTERNAL_COMMANDS_DISABLED_MESSAGE)

    result = await run_command_with_input(
        rule.rule, output, timeout=settings.external_command_timeout
    )
    if not result.success:
        return _fail(rule, f"External validation failed: {result.error}")
    return ValidationResult(passed=True)


def _coerce_rule(rule: RuleInput) -> Any:
    if isinstance(rule, RULE_CLASSES):
        return rule
    if isinstance(rule, Mapping) and rule.get("type") not in KNOWN_RULE_TYPES:
        return None
    return rule_adapter.validate_python(rule)


async def validate_step_output(
    output: str,
    rule: RuleInput,
    settings: Optional[FlowkitSettings] = None,
) -> ValidationResult:
    """Validate a step output according to a rule

    Args:
        output: The generated text to validate
        rule: A parsed ValidationRule or its mapping form from a flow file
        settings: Engine settings; defaults allow external commands with the
            standard 30 second timeout

    Returns:
        ValidationResult with passed status and an error message on failure
    """
    if settings is None:
        settings = FlowkitSettings(external_command_timeout=DEFAULT_TIMEOUT)

    try:
        parsed = _coerce_rule(rule)
        if parsed is None:
            return ValidationResult(passed=False, error=UNKNOWN_VALIDATION_TYPE_MESSAGE)

        text = output if isinstance(output, str) else str(output)

        if isinstance(parsed, RegexRule):
            result = _validate_regex(text, parsed)
        elif isinstance(parsed, LengthRule):
            result = _validate_length(text, parsed)
        elif isinstance(parsed, ContainsRule):
            result = _validate_contains(text, parsed)
        elif isinstance(parsed, ExternalCommandRule):
            result = await _validate_external_command(text, parsed, settings)
        else:
            result = ValidationResult(passed=False, error=UNKNOWN_VALIDATION_TYPE_MESSAGE)
    except ValidationError as e:
        errors = "; ".join(err["msg"] for err in e.errors())
        result = ValidationResult(passed=False, error=f"Validation error: {errors}")
    except Exception as e:
        logger.exception("Unexpected error during validation")
        result = ValidationResult(passed=False, error=f"Validation error: {e}")

    if not result.passed:
        log_with_context(
            logger,
            logging.INFO,
            "Validation failed",
            {"type": getattr(rule, "type", None) or _mapping_type(rule), "error": result.error},
        )
    return result


def _mapping_type(rule: Any) -> Optional[str]:
    if isinstance(rule, Mapping):
        return rule.get("type")
    return None
