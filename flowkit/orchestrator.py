"""
Orchestrator Module

Executes multi-step workflows defined in a flow document with step chaining,
validation and context injection. A run moves strictly forward through its
steps; the only early exit is a failed validation whose rule requests
halt_on_failure.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from config.types import FlowkitSettings
from flowkit.backends.factory import BackendSelector
from flowkit.errors import FlowNotFoundError
from flowkit.flow_loader import load_flow_document
from flowkit.models import (
    FlowStep,
    GenerationOptions,
    OrchestrationResult,
    StepResult,
    ValidationResult,
    halts_on_failure,
)
from flowkit.templating import (
    CONTEXT,
    PREVIOUS_OUTPUT,
    build_template_values,
    placeholder,
    render_prompt,
)
from flowkit.utils import log_with_context
from flowkit.validation import validate_step_output

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "dummy"


def _read_context_file(path: str) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read context file {path}: {e}")
        return None


class Orchestrator:
    """Runs named flows against a selected completion backend.

    Each run loads its own flow document and backend, so independent runs can
    execute concurrently.
    """

    def __init__(
        self,
        settings: Optional[FlowkitSettings] = None,
        selector: Optional[BackendSelector] = None,
    ):
        self.settings = settings or FlowkitSettings()
        self.selector = selector or BackendSelector(self.settings)

    def resolve_target_model(self, target_model: Optional[str]) -> str:
        return target_model or self.settings.llm_provider or FALLBACK_MODEL

    def _render_step_prompt(
        self,
        step: FlowStep,
        index: int,
        values: Dict[str, str],
        context: Optional[str],
    ) -> str:
        prompt = render_prompt(step.prompt, values)
        if index == 0 and context is not None and placeholder(CONTEXT) not in step.prompt:
            prompt = f"{prompt}\n\nContext:\n{context}"
        return prompt

    async def run(
        self,
        flow_name: str,
        target_model: Optional[str] = None,
        context_file_path: Optional[str] = None,
        variables: Optional[Mapping[str, str]] = None,
        language: Optional[str] = None,
        test_framework: Optional[str] = None,
        flow_path: Optional[str] = None,
    ) -> OrchestrationResult:
        """Execute a named flow

        Args:
            flow_name: Name of the flow in the flow document
            target_model: Model identifier; defaults to settings.llm_provider, then 'dummy'
            context_file_path: File whose contents are injected as {{context}}
            variables: Extra placeholder values; may override language/test_framework
            language: Value for {{language}}
            test_framework: Value for {{test_framework}}
            flow_path: Flow document to read instead of settings.flow_file_path

        Returns:
            OrchestrationResult for the run

        Raises:
            FlowNotFoundError: If no flow has the requested name
        """
        start_ts = time.monotonic()
        resolved_model = self.resolve_target_model(target_model)
        document_path = flow_path or self.settings.flow_file_path

        document = load_flow_document(document_path)
        flow = document.find(flow_name)
        if flow is None:
            raise FlowNotFoundError(flow_name, document_path)

        backend = self.selector.select(resolved_model)

        values = build_template_values(variables, language, test_framework)
        context = _read_context_file(context_file_path) if context_file_path else None
        if context is not None:
            values[CONTEXT] = context

        log_with_context(
            logger,
            logging.INFO,
            "Starting flow",
            {
                "flow_name": flow_name,
                "target_model": resolved_model,
                "backend": type(backend).__name__,
                "steps": len(flow.steps),
            },
        )

        outputs: List[StepResult] = []
        previous_output = ""

        for index, step in enumerate(flow.steps):
            values[PREVIOUS_OUTPUT] = previous_output
            prompt = self._render_step_prompt(step, index, values, context)

            response = await backend.generate_completion(
                prompt,
                GenerationOptions(max_tokens=step.max_tokens, temperature=step.temperature),
            )

            validation_result: Optional[ValidationResult] = None
            if step.validation is not None:
                validation_result = await validate_step_output(
                    response.content, step.validation, self.settings
                )
                if not validation_result.passed and halts_on_failure(step.validation):
                    outputs.append(
                        StepResult(
                            step_id=step.step_id,
                            output=response.content,
                            validation=validation_result,
                        )
                    )
                    log_with_context(
                        logger,
                        logging.WARNING,
                        "Halting flow after failed validation",
                        {
                            "flow_name": flow_name,
                            "step_id": step.step_id,
                            "step_index": index,
                            "error": validation_result.error,
                        },
                    )
                    return OrchestrationResult(
                        flow_name=flow_name,
                        target_model=resolved_model,
                        steps_executed=outputs,
                        total_duration_ms=_elapsed_ms(start_ts),
                        success=False,
                    )

            outputs.append(
                StepResult(
                    step_id=step.step_id,
                    output=response.content,
                    tokens=response.tokens_used,
                    validation=validation_result,
                )
            )
            previous_output = response.content
            log_with_context(
                logger,
                logging.DEBUG,
                "Step completed",
                {
                    "flow_name": flow_name,
                    "step_id": step.step_id,
                    "tokens": response.tokens_used,
                    "validation_passed": None if validation_result is None else validation_result.passed,
                },
            )

        duration_ms = _elapsed_ms(start_ts)
        log_with_context(
            logger,
            logging.INFO,
            "Flow completed",
            {"flow_name": flow_name, "steps": len(outputs), "duration_ms": duration_ms},
        )
        return OrchestrationResult(
            flow_name=flow_name,
            target_model=resolved_model,
            steps_executed=outputs,
            total_duration_ms=duration_ms,
            success=True,
            final_output=previous_output,
        )


def _elapsed_ms(start_ts: float) -> int:
    return max(0, int((time.monotonic() - start_ts) * 1000))


async def execute_orchestration(
    arguments: Mapping[str, Any], settings: Optional[FlowkitSettings] = None
) -> OrchestrationResult:
    """Run a flow from tool-style arguments

    Args:
        arguments: Mapping with flow_name, target_model and optional
            context_file_path / variables
        settings: Engine settings; loaded from the environment when omitted
    """
    if settings is None:
        from config.manager import EnvironmentManager

        settings = EnvironmentManager().load().to_settings()

    return await Orchestrator(settings).run(
        flow_name=arguments["flow_name"],
        target_model=arguments.get("target_model"),
        context_file_path=arguments.get("context_file_path"),
        variables=arguments.get("variables"),
    )
