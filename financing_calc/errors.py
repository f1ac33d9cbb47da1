"""Exceptions raised by the financing calculator."""


class ConfigurationError(ValueError):
    """A scenario is structurally impossible to evaluate.

    Raised for inputs that are well-formed numbers but describe no valid
    schedule, e.g. a grace period that consumes the whole term.
    """

    def __init__(self, message: str, scenario_id: str = "") -> None:
        super().__init__(message)
        self.scenario_id = scenario_id
