"""
Types used throughout the flowkit package.

Flow documents, validation rules, backend requests and run results are all
pydantic models so that flow files are checked once, when they are parsed.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

KNOWN_RULE_TYPES = ("regex", "length", "contains", "external_command")


def _fold_halt_flag(data: Any) -> Any:
    # continue_on_failure is the inverse of halt_on_failure; an explicit
    # halt_on_failure always wins.
    if isinstance(data, dict) and "continue_on_failure" in data:
        data = dict(data)
        continue_flag = data.pop("continue_on_failure")
        if data.get("halt_on_failure") is None and continue_flag is not None:
            data["halt_on_failure"] = not bool(continue_flag)
    return data


class _RuleBase(BaseModel):
    """Fields shared by every validation rule."""

    error_message: Optional[str] = None
    halt_on_failure: bool = False

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _fold_continue_on_failure(cls, data: Any) -> Any:
        return _fold_halt_flag(data)


class RegexRule(_RuleBase):
    type: Literal["regex"] = "regex"
    rule: str


class LengthRule(_RuleBase):
    type: Literal["length"] = "length"
    rule: int = Field(ge=0)


class ContainsRule(_RuleBase):
    type: Literal["contains"] = "contains"
    rule: str


class ExternalCommandRule(_RuleBase):
    type: Literal["external_command"] = "external_command"
    rule: str


ValidationRule = Annotated[
    Union[RegexRule, LengthRule, ContainsRule, ExternalCommandRule],
    Field(discriminator="type"),
]

rule_adapter = TypeAdapter(ValidationRule)

RULE_CLASSES = (RegexRule, LengthRule, ContainsRule, ExternalCommandRule)


def halts_on_failure(rule: Any) -> bool:
    """Whether a failed check against this rule stops the run.

    Accepts a parsed rule or the raw mapping kept for a malformed rule.
    """
    if isinstance(rule, RULE_CLASSES):
        return rule.halt_on_failure
    if isinstance(rule, dict):
        folded = _fold_halt_flag(rule)
        return bool(folded.get("halt_on_failure"))
    return False


class ValidationResult(BaseModel):
    """Outcome of checking one output against one rule."""

    passed: bool
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class FlowStep(BaseModel):
    """A single step in a workflow."""

    id: Optional[str] = None
    name: Optional[str] = None
    prompt: str = ""
    use_previous_output: Optional[bool] = None
    # A known rule type with a malformed payload is kept as its raw mapping so
    # the run reports it as a failed validation instead of dropping the flow.
    validation: Optional[Union[ValidationRule, Dict[str, Any]]] = None
    max_tokens: int = 512
    temperature: float = 0.3

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    @field_validator("validation", mode="plain")
    @classmethod
    def _parse_validation(cls, value: Any) -> Any:
        if value is None or isinstance(value, RULE_CLASSES):
            return value
        if not isinstance(value, dict):
            raise ValueError("validation must be a mapping")
        if value.get("type") not in KNOWN_RULE_TYPES:
            raise ValueError(f"unknown validation type: {value.get('type')!r}")
        try:
            return rule_adapter.validate_python(value)
        except ValidationError:
            return dict(value)

    @field_validator("prompt", mode="before")
    @classmethod
    def _prompt_defaults_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("max_tokens", mode="before")
    @classmethod
    def _null_max_tokens(cls, value: Any) -> Any:
        return 512 if value is None else value

    @field_validator("temperature", mode="before")
    @classmethod
    def _null_temperature(cls, value: Any) -> Any:
        return 0.3 if value is None else value

    @property
    def step_id(self) -> Optional[str]:
        """Identifier used in results: id, then name."""
        return self.id if self.id is not None else self.name


class Flow(BaseModel):
    """A named, ordered sequence of steps."""

    name: str
    description: Optional[str] = None
    steps: List[FlowStep] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    @field_validator("steps", mode="before")
    @classmethod
    def _null_steps_are_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class FlowDocument(BaseModel):
    """Parsed contents of a flow file."""

    meta: Optional[Dict[str, Any]] = None
    flows: List[Flow] = Field(default_factory=list)

    def find(self, name: str) -> Optional[Flow]:
        """Get a flow by exact name."""
        for flow in self.flows:
            if flow.name == name:
                return flow
        return None

    def names(self) -> List[str]:
        return [flow.name for flow in self.flows]


class GenerationOptions(BaseModel):
    """Options for controlling generation behavior."""

    max_tokens: int = 512
    temperature: float = 0.3


class CompletionResponse(BaseModel):
    """Response from a completion backend."""

    content: str
    tokens_used: int = 0
    model: str


class StepResult(BaseModel):
    """Record of one executed step."""

    step_id: Optional[str] = None
    output: str
    tokens: Optional[int] = None
    validation: Optional[ValidationResult] = None

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"step_id": self.step_id, "output": self.output}
        if self.tokens is not None:
            data["tokens"] = self.tokens
        data["validation"] = (
            self.validation.to_dict() if self.validation is not None else None
        )
        return data


class OrchestrationResult(BaseModel):
    """Terminal artifact of one orchestration run."""

    flow_name: str
    target_model: str
    steps_executed: List[StepResult] = Field(default_factory=list)
    total_duration_ms: int = 0
    success: bool
    final_output: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "flow_name": self.flow_name,
            "target_model": self.target_model,
            "steps_executed": [step.to_dict() for step in self.steps_executed],
            "total_duration_ms": self.total_duration_ms,
            "success": self.success,
        }
        if self.success:
            data["final_output"] = self.final_output
        return data
