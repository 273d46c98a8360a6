class NewsprismError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(NewsprismError):
    """A required credential or setting is missing. Fatal for the whole invocation."""


class ProviderError(NewsprismError):
    """A scrape, embedding or summarization provider call failed."""

    def __init__(self, provider, message):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class BudgetExhaustedError(NewsprismError):
    def __init__(self, used=None, budget=None):
        self.used = used
        self.budget = budget
        super().__init__(f"Daily LLM token budget exhausted ({used}/{budget})")


def require_setting(config, key, purpose=None):
    """Return config[key] or raise ConfigurationError when it is unset."""
    value = config.get(key)
    if not value:
        raise ConfigurationError(f"Missing {key}" + (f" (required for {purpose})" if purpose else ''))
    return value
