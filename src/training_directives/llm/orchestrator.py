"""
Generative orchestration.

One generate-validate-repair loop shared by every narration call site:

    generate -> parse -> shape-check -> validate
        -> (invalid) repair prompt -> generate ... (bounded)
        -> (exhausted, unavailable or provider error) fallback template

The loop never raises for provider, parse or validation failures; every
call resolves to a NarrationPayload.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config import get_settings
from ..models import (
    Directive,
    DirectiveConstraints,
    NarrationPayload,
    NarrationSource,
)
from .prompts import build_repair_prompt
from .providers import GenerationRequest, TextGenerationProvider
from .schemas import NarrationSchema
from .templates import FallbackTemplateStore, default_template_stores
from .validator import ContentValidator, critical_errors


logger = logging.getLogger(__name__)


DEFAULT_MAX_ATTEMPTS = 2

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or the text itself."""
    match = _CODE_FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_object(response: str) -> Any:
    """
    Parse JSON from a raw provider response.

    Tries a direct parse, then fenced code blocks, then the outermost
    brace-delimited span.

    Raises:
        ValueError: If no JSON can be recovered
    """
    try:
        return json.loads(response)
    except (ValueError, RecursionError):
        pass

    for match in _CODE_FENCE_PATTERN.findall(response):
        try:
            return json.loads(match)
        except (ValueError, RecursionError):
            continue

    start_idx = response.find("{")
    end_idx = response.rfind("}")
    if start_idx != -1 and end_idx > start_idx:
        try:
            return json.loads(response[start_idx:end_idx + 1])
        except (ValueError, RecursionError):
            pass

    raise ValueError(f"Could not parse JSON from response: {response[:200]}")


@dataclass(frozen=True)
class PromptContext:
    """Everything one narration call needs besides the schema."""

    system_instruction: str
    user_prompt: str
    directive: Optional[Directive] = None
    constraints: Optional[DirectiveConstraints] = None
    evidence: Tuple[str, ...] = field(default_factory=tuple)
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None


class GenerativeOrchestrator:
    """
    Runs the bounded generate-validate-repair loop.

    Args:
        provider: Text-generation backend; None behaves as unavailable
        template_stores: Fallback stores keyed by schema name
        max_attempts: Total provider calls allowed per narration
    """

    def __init__(
        self,
        provider: Optional[TextGenerationProvider],
        template_stores: Optional[Mapping[str, FallbackTemplateStore]] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.provider = provider
        self.template_stores = dict(template_stores or default_template_stores())
        self.max_attempts = max_attempts

    @property
    def provider_available(self) -> bool:
        return self.provider is not None and self.provider.is_available()

    async def narrate(
        self,
        context: PromptContext,
        schema: NarrationSchema,
        validator: Optional[ContentValidator] = None,
    ) -> NarrationPayload:
        """
        Produce validated narration, or the schema's fallback template.

        Returns:
            NarrationPayload whose retry_count is the number of provider
            calls made beyond the first.
        """
        validator = validator or ContentValidator(schema)

        if not self.provider_available:
            logger.info(f"Generation unavailable, using {schema.name} fallback")
            return self._fallback(schema, context, retry_count=0)

        settings = get_settings()
        prompt = context.user_prompt

        for attempt in range(1, self.max_attempts + 1):
            request = GenerationRequest(
                system_instruction=context.system_instruction,
                user_prompt=prompt,
                temperature=(
                    context.temperature
                    if context.temperature is not None
                    else settings.narration_temperature
                ),
                max_output_tokens=context.max_output_tokens or settings.narration_max_output_tokens,
            )

            try:
                raw = await self.provider.generate(request)
            except Exception as e:
                logger.warning(
                    f"{schema.name} generation failed on attempt {attempt}: "
                    f"{type(e).__name__}: {e}"
                )
                return self._fallback(schema, context, retry_count=attempt - 1)

            try:
                content, errors, warnings, retryable = self._check(raw, context, schema, validator)
            except Exception as e:
                logger.warning(
                    f"{schema.name} response check failed on attempt {attempt}: "
                    f"{type(e).__name__}: {e}"
                )
                content, errors, warnings, retryable = {}, ["response could not be checked"], [], True
            if not errors:
                logger.debug(f"{schema.name} validated on attempt {attempt}")
                return NarrationPayload(
                    schema=schema.name,
                    content=content,
                    source=NarrationSource.GENERATED,
                    retry_count=attempt - 1,
                    warnings=tuple(warnings),
                )

            logger.warning(
                f"{schema.name} attempt {attempt}/{self.max_attempts} rejected: "
                + "; ".join(errors)
            )
            if not retryable or attempt == self.max_attempts:
                return self._fallback(schema, context, retry_count=attempt - 1)

            prompt = build_repair_prompt(context.user_prompt, errors, critical_errors(errors))

        return self._fallback(schema, context, retry_count=self.max_attempts - 1)

    def _check(
        self,
        raw: str,
        context: PromptContext,
        schema: NarrationSchema,
        validator: ContentValidator,
    ) -> Tuple[Dict[str, Any], List[str], List[str], bool]:
        """Parse, shape-check and validate one raw response."""
        try:
            data = parse_json_object(strip_code_fences(raw))
        except ValueError:
            return {}, ["response is not valid JSON"], [], True

        content, shape_errors = schema.parse(data)
        if content is None:
            return {}, shape_errors, [], True

        result = validator.validate(
            content,
            directive=context.directive,
            constraints=context.constraints,
            evidence=context.evidence,
        )
        return content, result.errors, result.warnings, result.retryable

    def _fallback(
        self,
        schema: NarrationSchema,
        context: PromptContext,
        retry_count: int,
    ) -> NarrationPayload:
        store = self.template_stores[schema.name]
        directive = context.directive
        return store.get_template(
            category=directive.category if directive else None,
            stimulus_type=directive.stimulus_type if directive else None,
            retry_count=retry_count,
        )
