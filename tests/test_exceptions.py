"""Tests for the error hierarchy."""

from training_directives.exceptions import (
    ConfigurationError,
    ErrorCode,
    SnapshotValidationError,
    TemplateDefinitionError,
)


class TestErrorCodes:
    def test_every_code_has_a_raising_error(self):
        assert {code.value for code in ErrorCode} == {
            "INTERNAL_ERROR",
            "CONFIGURATION_ERROR",
            "SNAPSHOT_INVALID",
            "TEMPLATE_DEFINITION_ERROR",
            "LLM_SERVICE_UNAVAILABLE",
            "LLM_RATE_LIMITED",
            "LLM_RESPONSE_INVALID",
            "LLM_TIMEOUT",
            "LLM_API_ERROR",
        }

    def test_snapshot_error_to_dict(self):
        error = SnapshotValidationError("vitality out of range", field="vitality")

        assert error.to_dict() == {
            "error": {
                "code": "SNAPSHOT_INVALID",
                "message": "vitality out of range",
                "details": {"field": "vitality"},
            }
        }

    def test_template_error_is_a_configuration_error(self):
        error = TemplateDefinitionError(["default: headline too long"], schema="welcome")

        assert isinstance(error, ConfigurationError)
        assert error.code == ErrorCode.TEMPLATE_DEFINITION_ERROR
        assert error.details == {"errors": ["default: headline too long"], "schema": "welcome"}
