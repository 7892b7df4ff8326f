"""Tests for error types."""

from pathlib import Path

from honorer.di import Token
from honorer.errors import (
    CircularDependencyError,
    ConfigurationError,
    HonorerError,
    LifecycleHookError,
    MissingInjectionTokenError,
    MissingModuleDescriptorError,
    ModuleRegistrationError,
    ProviderNotFoundError,
)


class Database:
    pass


class TestHonorerError:
    def test_generated_error_code(self):
        class PluginLoadError(HonorerError):
            pass

        assert PluginLoadError("failed").error_code == "PLUGIN_LOAD"

    def test_context_and_suggestions(self):
        error = HonorerError("failed").with_context(attempt=2).with_suggestion("Retry later")

        data = error.to_dict()
        assert data["error_type"] == "HonorerError"
        assert data["message"] == "failed"
        assert data["context"]["details"] == {"attempt": 2}
        assert data["context"]["suggestions"] == ["Retry later"]
        assert data["cause"] is None

    def test_from_exception(self):
        try:
            raise KeyError("token")
        except KeyError as e:
            error = HonorerError.from_exception(e, "lookup failed")

        assert error.message == "lookup failed"
        assert isinstance(error.cause, KeyError)
        assert error.context.causes[0]["type"] == "KeyError"

    def test_code_and_recoverability_overrides(self):
        error = CircularDependencyError(Database, [Database], error_code="CYCLE", recoverable=True)

        assert error.error_code == "CYCLE"
        assert error.recoverable
        assert not CircularDependencyError.recoverable

    def test_format_for_cli(self):
        error = HonorerError("bad [value]").with_suggestion("Use Token('db')").with_context(path="x.yaml")

        short = error.format_for_cli()
        verbose = error.format_for_cli(verbose=True)

        assert short.startswith("bad \\[value]")
        assert "Code: HONORER" in short
        assert "Use Token('db')" in short
        assert "x.yaml" not in short
        assert "path: x.yaml" in verbose

    def test_logged_on_creation(self, log_messages):
        HonorerError("visible")
        CircularDependencyError(Database, [Database])

        assert ("ERROR", "visible") in log_messages
        assert any(level == "CRITICAL" for level, _ in log_messages)


class TestSpecificErrors:
    def test_provider_not_found(self):
        error = ProviderNotFoundError(Token("cache"))

        assert str(error) == "No provider found for token: Token('cache')"
        assert error.error_code == "PROVIDER_NOT_FOUND"
        assert isinstance(error, LookupError)

    def test_circular_dependency_path(self):
        class Repository:
            pass

        error = CircularDependencyError(Database, [Database, Repository])

        assert str(error) == "Circular dependency detected: Database -> Repository -> Database"
        assert not error.recoverable

    def test_missing_injection_token(self):
        error = MissingInjectionTokenError(Database, "url")

        assert "'url'" in str(error)
        assert "Database" in str(error)

    def test_missing_module_descriptor(self):
        error = MissingModuleDescriptorError(Database)

        assert str(error) == "Module Database is missing a module descriptor"
        assert "@module" in error.context.suggestions[0]

    def test_module_registration_wraps_cause(self):
        cause = ValueError("bad provider")
        error = ModuleRegistrationError("UsersModule", cause)

        assert str(error) == "[UsersModule] Registration failed -> bad provider"
        assert error.cause is cause
        assert error.to_dict()["cause"] == "bad provider"

    def test_lifecycle_hook(self):
        error = LifecycleHookError("on_module_init", "Database", "DataModule", RuntimeError("offline"))

        assert str(error) == "on_module_init failed for Database in DataModule: offline"
        assert error.error_code == "LIFECYCLE_HOOK_FAILED"

    def test_configuration_error_details(self):
        error = ConfigurationError.invalid_file(Path("honorer.yaml"), "expected a mapping")

        assert error.error_code == "CONFIG_INVALID_FILE"
        assert error.context.details["config_path"] == "honorer.yaml"
