class ConformanceError(Exception):
    """Base class for every error raised by the verification engine."""


class RenderError(ConformanceError):
    """A resource template could not be materialized (bad path, missing placeholder, malformed output)."""

    def __init__(self, template, reason):
        self.template = template
        self.reason = reason
        super().__init__(f"Failed to render template '{template}': {reason}")


class ClusterError(ConformanceError):
    """
    A control-plane request failed.

    When raised from an observation inside a poll loop it is treated as "no match yet"
    and retried until the poll deadline.
    """

    def __init__(self, message, command=None, output=""):
        self.command = command
        self.output = output
        super().__init__(message)


class ResourceNotFound(ClusterError):
    pass


class AdmissionError(ClusterError):
    """The control plane rejected a create/patch. The remote message is kept verbatim."""
    pass


class ClientUnavailable(ConformanceError):
    """The cluster client itself cannot be invoked (binary missing, no kubeconfig)."""
    pass


class DeadlineExceeded(ConformanceError):
    def __init__(self, expected, last_observed, elapsed, timeout, attempts, result=None):
        self.expected = expected
        self.last_observed = last_observed
        self.elapsed = elapsed
        self.timeout = timeout
        self.attempts = attempts
        self.result = result
        super().__init__(
            f"Reached max time allowed ({timeout:g}s) after {attempts} attempt(s) in {elapsed:.1f}s: "
            f"expected {expected} but last observed {last_observed!r}"
        )


class ConditionViolated(ConformanceError):
    def __init__(self, expected, observed, elapsed, attempts):
        self.expected = expected
        self.observed = observed
        self.elapsed = elapsed
        self.attempts = attempts
        super().__init__(
            f"Condition stopped holding after {elapsed:.1f}s ({attempts} attempt(s)): "
            f"expected {expected} but observed {observed!r}"
        )


class OperationError(ConformanceError):
    """A sampled operation ran but failed; its output is still classified against the matchers."""

    def __init__(self, message, output=""):
        self.output = output
        super().__init__(message)


class OperationUnavailable(ConformanceError):
    pass


class JsonPathError(ConformanceError):
    pass


class BlockAssertionError(AssertionError):
    def __init__(self, marker, failures, block):
        self.marker = marker
        self.failures = list(failures)
        self.block = block
        details = "; ".join(self.failures)
        super().__init__(f"Block '{marker}' assertion failed: {details}\n{block}")
