"""Narration generation: providers, prompts, validation and fallbacks."""

from .providers import (
    GenerationRequest,
    LLMClient,
    ModelType,
    RetryConfig,
    TextGenerationProvider,
    get_llm_client,
    reset_llm_client,
)
from .schemas import (
    ACTIVITY_SUGGESTION,
    ALL_SCHEMAS,
    DIRECTIVE_NARRATION,
    ONBOARDING_WELCOME,
    POST_ACTIVITY_INSIGHT,
    NarrationSchema,
)
from .validator import ContentValidator, is_critical_failure
from .templates import (
    FallbackTemplateStore,
    SelfCheckReport,
    default_template_stores,
    verify_all_templates,
)
from .orchestrator import GenerativeOrchestrator, PromptContext
from .narration import (
    generate_activity_insight,
    generate_activity_suggestion,
    generate_welcome,
    narrate_directive,
    should_suggest_activity,
)

__all__ = [
    # Providers
    "GenerationRequest",
    "LLMClient",
    "ModelType",
    "RetryConfig",
    "TextGenerationProvider",
    "get_llm_client",
    "reset_llm_client",
    # Schemas
    "ACTIVITY_SUGGESTION",
    "ALL_SCHEMAS",
    "DIRECTIVE_NARRATION",
    "ONBOARDING_WELCOME",
    "POST_ACTIVITY_INSIGHT",
    "NarrationSchema",
    # Validation and fallbacks
    "ContentValidator",
    "is_critical_failure",
    "FallbackTemplateStore",
    "SelfCheckReport",
    "default_template_stores",
    "verify_all_templates",
    # Orchestration
    "GenerativeOrchestrator",
    "PromptContext",
    "generate_activity_insight",
    "generate_activity_suggestion",
    "generate_welcome",
    "narrate_directive",
    "should_suggest_activity",
]
