class ConfigurationError(Exception):
    """Baseline table is missing, empty or malformed."""


class NotFound(KeyError):
    """Unknown environment or service category."""

    def __str__(self):
        return str(self.args[0]) if self.args else "not found"
