"""
Prompt builder for analysis requests.

Responsible for:
- Loading and rendering Jinja2 templates (system, per-kind, retry, corrections)
- Injecting the optional conversation context into per-kind prompts
- Classifying a message as QUESTION or STATEMENT for the alternatives prompt
- Building corrective retry prompts from a structured GenerationError
"""

from functools import partial
from pathlib import Path
from typing import Callable, Optional

import structlog
from jinja2 import Environment, FileSystemLoader, Template

from communication_mirror.llm.corrections import select_correction
from communication_mirror.models.enums import AnalysisKind, MetricName
from communication_mirror.validation.exceptions import GenerationError

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

TEMPLATE_BY_KIND = {
    AnalysisKind.INTENT: "intent.j2",
    AnalysisKind.TONE: "tone.j2",
    AnalysisKind.IMPACT: "impact.j2",
    AnalysisKind.ALTERNATIVES: "alternatives.j2",
}


def message_type(message: str) -> str:
    """QUESTION when the trimmed message ends with '?', else STATEMENT."""
    return "QUESTION" if message.strip().endswith("?") else "STATEMENT"


class PromptBuilder:
    """
    Build prompts for the four analysis kinds and their corrective retries.

    Handles:
    - Template rendering (Jinja2)
    - Conversation context section
    - Corrective block selection by failure tag and field path
    """

    def __init__(self, templates_dir: Optional[Path] = None):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing prompt templates
                (defaults to the templates packaged with this module)
        """
        self.templates_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False  # Prompts, not HTML
        )
        self.jinja_env.globals["metric_names"] = [name.value for name in MetricName]

        try:
            self.system_template = self.jinja_env.get_template("system_prompt.j2")
            self.retry_template = self.jinja_env.get_template("retry_prompt.j2")
            self.kind_templates: dict[AnalysisKind, Template] = {
                kind: self.jinja_env.get_template(name)
                for kind, name in TEMPLATE_BY_KIND.items()
            }
            logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e))
            raise

    def build_system_prompt(self) -> str:
        """
        Render system prompt from template.

        System prompt is static (no variables).
        """
        return self.system_template.render().strip()

    def build_prompt(
        self,
        kind: AnalysisKind,
        message: str,
        prior_context: Optional[str] = None,
    ) -> str:
        """
        Render the prompt for one analysis kind.

        Args:
            kind: Analysis kind
            message: User message to analyze
            prior_context: Formatted conversation context, if any

        Returns:
            Rendered prompt
        """
        prompt = self.kind_templates[kind].render(
            message=message,
            context=prior_context or "",
            message_type=message_type(message),
        ).strip()

        logger.debug(
            "Built analysis prompt",
            kind=kind.value,
            prompt_length=len(prompt),
            has_context=bool(prior_context),
        )
        return prompt

    def builder_for(self, kind: AnalysisKind) -> Callable[[str, Optional[str]], str]:
        """`(message, prior_context) -> prompt` callable bound to `kind`."""
        return partial(self.build_prompt, kind)

    def build_correction(self, error: GenerationError) -> str:
        """Corrective block for `error`, or an empty string when none applies."""
        topic = select_correction(error)
        if topic is None:
            return ""
        template = self.jinja_env.get_template(f"corrections/{topic.value}.j2")
        return template.render(
            fields=[
                field_error.leaf
                for field_error in error.field_errors
                if isinstance(field_error.leaf, str)
            ],
        ).strip()

    def build_retry_prompt(self, original_prompt: str, error: GenerationError) -> str:
        """
        Build the attempt-2 prompt: the original prompt, the exact error text
        and the matching corrective block.

        Args:
            original_prompt: Prompt used for attempt 1
            error: Failure of attempt 1

        Returns:
            Rendered retry prompt
        """
        correction = self.build_correction(error)
        prompt = self.retry_template.render(
            original_prompt=original_prompt,
            error_text=error.message,
            correction=correction,
        ).strip()

        logger.debug(
            "Built retry prompt",
            error_type=type(error).__name__,
            has_correction=bool(correction),
            prompt_length=len(prompt),
        )
        return prompt
