"""Exceptions raised by the traffic client."""


class TrafficGenError(Exception):
    """Base class for all traffic client errors."""


class ConfigSyntaxError(TrafficGenError):
    """A configuration line could not be parsed.

    Attributes:
        line_number: 1-based line number in the configuration file.
        line: The offending line.
    """

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class ConfigValidationError(TrafficGenError):
    """The parsed pattern set is not usable.

    Attributes:
        problems: Every problem found during validation.
    """

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class ArgumentError(TrafficGenError):
    """Invalid or conflicting command line arguments."""


class TransportError(TrafficGenError):
    """The transport refused to dispatch a request."""


class RuntimeFatalError(TrafficGenError):
    """The event loop failed and the run cannot continue."""
