"""Exception types raised by the memoization pass."""


class MemoizeError(Exception):
    """Base class for memoization pass errors."""


class ConfigError(MemoizeError, ValueError):
    """Invalid pass configuration."""


class RewritePreconditionError(MemoizeError):
    """Call-site rewriting was requested for a function the classifier
    did not approve. Raised before the program is touched."""

    def __init__(self, function_name: str, reason: str = ''):
        self.function_name = function_name
        self.reason = reason
        detail = f" ({reason})" if reason else ''
        super().__init__(f"'{function_name}' is not memoizable{detail}")


class IRConsistencyError(MemoizeError):
    """The program violates a structural invariant, e.g. a call site whose
    actual arguments disagree with the callee's parameters."""

    def __init__(self, function_name: str, message: str):
        self.function_name = function_name
        super().__init__(f"{function_name}: {message}")
