"""
Prompt builder for the two model calls of a chat exchange.

Responsible for:
- Loading and rendering Jinja2 templates (generation + detection system prompts)
- Constructing LLMGenerationRequest objects for both adapters
"""

from pathlib import Path
from typing import Optional
from jinja2 import Environment, FileSystemLoader
import structlog

from pii_chat.models.llm_models import LLMGenerationRequest


logger = structlog.get_logger(__name__)


class PromptBuilder:
    """
    Build system prompts and requests from templates.

    Templates:
    - generation_system_prompt.txt: asks for $N placeholders in the answer
    - detection_system_prompt.txt: asks for delimiter-wrapped PII spans
    """

    GENERATION_TEMPLATE = "generation_system_prompt.txt"
    DETECTION_TEMPLATE = "detection_system_prompt.txt"

    def __init__(
        self,
        templates_dir: Path,
        open_delimiter: str = "<s>",
        close_delimiter: str = "</s>",
    ):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing prompt templates
            open_delimiter: Marker the detector puts before each PII span
            close_delimiter: Marker the detector puts after each PII span
        """
        self.templates_dir = Path(templates_dir)
        self.open_delimiter = open_delimiter
        self.close_delimiter = close_delimiter

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False  # We're generating prompts, not HTML
        )

        try:
            self.generation_template = self.jinja_env.get_template(self.GENERATION_TEMPLATE)
            self.detection_template = self.jinja_env.get_template(self.DETECTION_TEMPLATE)
            logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e))
            raise

    def build_generation_system_prompt(self) -> str:
        """Render the placeholder-instruction system prompt (static)."""
        return self.generation_template.render().strip()

    def build_detection_system_prompt(self) -> str:
        """Render the detection system prompt with the configured delimiters."""
        return self.detection_template.render(
            open_delimiter=self.open_delimiter,
            close_delimiter=self.close_delimiter,
        ).strip()

    def build_request(
        self,
        prompt: str,
        system: Optional[str],
        model: str,
        temperature: float,
        max_tokens: int,
        stream: bool = False,
    ) -> LLMGenerationRequest:
        """
        Build an LLMGenerationRequest for either adapter.

        The user content is passed through untouched: both models see the
        raw user input.
        """
        llm_request = LLMGenerationRequest(
            prompt=prompt,
            system=system,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=stream,
        )

        logger.debug(
            "LLM request built",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=stream,
            prompt_length=len(prompt),
            system_prompt_length=len(system) if system else 0,
        )

        return llm_request
