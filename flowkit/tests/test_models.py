import pytest
from pydantic import ValidationError

from flowkit.models import (
    ContainsRule,
    Flow,
    FlowStep,
    LengthRule,
    OrchestrationResult,
    StepResult,
    ValidationResult,
    halts_on_failure,
)


class TestFlowStep:
    def test_defaults(self):
        step = FlowStep.model_validate({"prompt": "hi"})
        assert step.max_tokens == 512
        assert step.temperature == 0.3
        assert step.validation is None

    def test_missing_or_null_prompt_is_empty_string(self):
        assert FlowStep.model_validate({}).prompt == ""
        assert FlowStep.model_validate({"prompt": None}).prompt == ""

    def test_null_generation_params_use_defaults(self):
        step = FlowStep.model_validate({"prompt": "x", "max_tokens": None, "temperature": None})
        assert step.max_tokens == 512
        assert step.temperature == 0.3

    @pytest.mark.parametrize(
        "data, expected",
        [
            ({"id": "a", "name": "b"}, "a"),
            ({"name": "b"}, "b"),
            ({}, None),
        ],
    )
    def test_step_id_prefers_id_then_name(self, data, expected):
        assert FlowStep.model_validate(data).step_id == expected

    def test_validation_rule_is_discriminated(self):
        step = FlowStep.model_validate(
            {"prompt": "x", "validation": {"type": "length", "rule": "12"}}
        )
        assert isinstance(step.validation, LengthRule)
        assert step.validation.rule == 12

    def test_unknown_validation_type_is_rejected(self):
        with pytest.raises(ValidationError):
            FlowStep.model_validate({"prompt": "x", "validation": {"type": "magic", "rule": 1}})

    def test_malformed_known_rule_is_kept_raw(self):
        raw = {"type": "length", "rule": "ten", "halt_on_failure": True}
        step = FlowStep.model_validate({"prompt": "x", "validation": raw})
        assert step.validation == raw
        assert halts_on_failure(step.validation) is True

    def test_negative_length_is_kept_raw(self):
        step = FlowStep.model_validate({"validation": {"type": "length", "rule": -1}})
        assert step.validation == {"type": "length", "rule": -1}

    def test_validation_must_be_a_mapping(self):
        with pytest.raises(ValidationError):
            FlowStep.model_validate({"validation": "length"})

    def test_numbers_are_coerced_to_strings(self):
        step = FlowStep.model_validate(
            {"id": 1, "prompt": 42, "validation": {"type": "contains", "rule": 42}}
        )
        assert step.step_id == "1"
        assert step.prompt == "42"
        assert isinstance(step.validation, ContainsRule)
        assert step.validation.rule == "42"


class TestHaltFlags:
    def test_halt_defaults_to_false(self):
        rule = LengthRule(rule=1)
        assert rule.halt_on_failure is False

    def test_continue_false_means_halt(self):
        rule = LengthRule.model_validate({"rule": 1, "continue_on_failure": False})
        assert rule.halt_on_failure is True

    def test_continue_true_means_no_halt(self):
        rule = LengthRule.model_validate({"rule": 1, "continue_on_failure": True})
        assert rule.halt_on_failure is False

    def test_explicit_halt_wins_over_continue(self):
        rule = LengthRule.model_validate(
            {"rule": 1, "continue_on_failure": True, "halt_on_failure": True}
        )
        assert rule.halt_on_failure is True

    def test_raw_rule_folds_continue_flag(self):
        assert halts_on_failure({"type": "length", "continue_on_failure": False}) is True
        assert halts_on_failure({"type": "length"}) is False
        assert halts_on_failure(None) is False


class TestResultSerialization:
    def test_validation_result_omits_missing_error(self):
        assert ValidationResult(passed=True).to_dict() == {"passed": True}

    def test_halted_step_has_no_tokens_key(self):
        step = StepResult(step_id="s1", output="o", validation=ValidationResult(passed=False, error="e"))
        data = step.to_dict()
        assert "tokens" not in data
        assert data["validation"] == {"passed": False, "error": "e"}

    def test_failed_result_has_no_final_output(self):
        result = OrchestrationResult(flow_name="f", target_model="dummy", success=False)
        assert "final_output" not in result.to_dict()

    def test_successful_result_has_final_output(self):
        result = OrchestrationResult(
            flow_name="f", target_model="dummy", success=True, final_output="done"
        )
        assert result.to_dict()["final_output"] == "done"


def test_flow_with_null_steps():
    flow = Flow.model_validate({"name": "empty", "steps": None})
    assert flow.steps == []
