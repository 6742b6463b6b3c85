class RecipeBookError(Exception):
    """Base class for all recipebook errors."""


class ValidationError(RecipeBookError):
    """The caller supplied malformed or incomplete input."""


class NotFound(RecipeBookError):
    """No recipe exists under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"recipe ({name}) not found")
        self.name = name


class AuthError(RecipeBookError):
    """API key missing or not matching the configured one."""


class StorageError(RecipeBookError):
    """The storage backend failed to read or write."""


class ConfigError(RecipeBookError):
    """Configuration could not be read or is inconsistent."""


class ListenerError(RecipeBookError):
    """A network listener could not be started."""


class StartupError(RecipeBookError):
    """One or more listeners of a group failed to start."""

    def __init__(self, failures):
        self.failures = dict(failures)
        details = "; ".join(f"{name}: {exc}" for name, exc in self.failures.items())
        super().__init__(f"listeners failed to start ({details})")
