import subprocess
import time
from dataclasses import dataclass, field

import requests

from functions import (
    ClientUnavailable,
    ClusterError,
    Consts,
    DeadlineExceeded,
    Functions,
    OperationError,
    OperationUnavailable,
    ResourceNotFound,
    logger_traffic,
)

from .matching import Matcher, MatchMode


@dataclass
class SampleResult:
    """Per-matcher tallies of a sampling run. ``sum(counts) + unmatched == attempts``."""
    counts: list
    unmatched: int = 0
    attempts: int = 0
    last_output: str = ""
    outputs: list = field(default_factory=list, repr=False)

    @property
    def total(self):
        return sum(self.counts)

    def fraction(self, index):
        return self.counts[index] / self.attempts if self.attempts else 0.0

    def fractions(self):
        return [self.fraction(i) for i in range(len(self.counts))]

    def all_on(self, index):
        """Every attempt landed on outcome ``index`` (stickiness)."""
        return self.attempts > 0 and self.counts[index] == self.attempts

    def approximates(self, weights, tolerance=None):
        """
        Each outcome was observed and lies within ``tolerance`` (relative) of its weighted share.

        e.g. weights (2, 1) over 90 attempts expects 60/30; with 0.25 the bands are 45..75 and 22.5..37.5.
        """
        tolerance = Consts.WEIGHT_TOLERANCE if tolerance is None else tolerance
        if len(weights) != len(self.counts):
            raise ValueError(f"Got {len(weights)} weights for {len(self.counts)} outcomes")
        weight_sum = sum(weights)
        if weight_sum <= 0 or self.attempts == 0:
            return False

        for count, weight in zip(self.counts, weights):
            expected = self.attempts * weight / weight_sum
            if weight > 0 and count == 0:
                return False
            if abs(count - expected) > tolerance * expected:
                return False
        return True


class TrafficSampler:
    """
    Runs an operation a fixed number of times and tallies each output against ordered matchers.

    The first matching matcher wins, so list the most specific expectation first when one
    outcome string is a prefix of another. Misses are counted as ``unmatched`` and never fail
    the run; callers assert on the returned counts. Every run has a wall-clock deadline,
    ``Consts.SAMPLE_TIMEOUT`` unless ``timeout`` is given.
    """

    def __init__(self, clock=time.monotonic, sleep=time.sleep):
        self.clock = clock
        self.sleep = sleep

    def sample(self, operation, matchers, attempts, delay=0, timeout=None, mode=MatchMode.REGEX) -> SampleResult:
        if attempts < 1:
            raise ValueError(f"attempts must be a positive number, got {attempts}")
        if isinstance(matchers, (str, Matcher)):
            matchers = [matchers]
        matchers = [Matcher.coerce(m, mode) for m in matchers]
        if not matchers:
            raise ValueError("At least one matcher is required")

        result = SampleResult(counts=[0] * len(matchers), attempts=0)
        start = self.clock()
        timeout = Consts.SAMPLE_TIMEOUT if timeout is None else timeout
        deadline = start + timeout

        for attempt in range(attempts):
            if self.clock() >= deadline:
                elapsed = self.clock() - start
                logger_traffic.error(f"Sampling stopped after {result.attempts}/{attempts} attempt(s), counts {result.counts}")
                raise DeadlineExceeded(f"{attempts} completed attempts", result.last_output, elapsed, timeout,
                                       result.attempts, result=result)
            if attempt > 0 and delay:
                self.sleep(delay)

            try:
                output = operation()
            except OperationError as e:
                output = e.output or str(e)
                logger_traffic.debug(f"Attempt {attempt + 1} failed: {e}")

            result.attempts += 1
            result.last_output = output
            result.outputs.append(output)
            index = self.classify(matchers, output)
            if index is None:
                result.unmatched += 1
                logger_traffic.debug(f"Attempt {attempt + 1}: no expected outcome in {output!r}")
            else:
                result.counts[index] += 1

        logger_traffic.info(f"Sampled {result.attempts} attempt(s): counts {result.counts}, unmatched {result.unmatched}")
        return result

    @staticmethod
    def classify(matchers, output):
        for index, matcher in enumerate(matchers):
            if matcher.matches(output):
                return index
        return None


class CommandOperation:
    """Runs a local command, e.g. curl from the test host (the "external" client)."""

    def __init__(self, command, timeout=30):
        self.command = command
        self.timeout = timeout

    def __call__(self):
        try:
            return_code, stdout, stderr = Functions.run_bash(logger_traffic, self.command, timeout=self.timeout)
        except FileNotFoundError as e:
            raise OperationUnavailable(f"Cannot run {self.command}: {e}")
        except subprocess.TimeoutExpired:
            raise OperationError(f"{self.command} timed out after {self.timeout}s", output="")

        output = "\n".join(part for part in (stdout, stderr) if part)
        if return_code != 0:
            raise OperationError(f"{self.command} exited with {return_code}: {stderr}", output=output)
        return output


class PodExecOperation:
    """Runs a command inside a pod, e.g. curl from a client pod (the "internal" client)."""

    def __init__(self, context, pod, command, namespace=None):
        self.context = context
        self.pod = pod
        self.command = list(command)
        self.namespace = namespace or context.namespace

    def __call__(self):
        try:
            return self.context.client.exec(self.pod, self.namespace, self.command)
        except ResourceNotFound as e:
            raise OperationUnavailable(f"Client pod {self.namespace}/{self.pod} is gone: {e}")
        except ClientUnavailable as e:
            raise OperationUnavailable(str(e))
        except ClusterError as e:
            raise OperationError(str(e), output=e.output or str(e))


class HttpOperation:
    """
    Issues one HTTP request per call with requests.

    Without a session every call is independent (no cookies kept). Pass a shared
    ``requests.Session`` to capture an affinity cookie on the first call and replay it on
    every following one.
    """

    def __init__(self, url, host=None, session=None, headers=None, cookies=None, method="GET",
                 timeout=10, verify=False, allow_redirects=False, include_status=False):
        self.url = url
        self.session = session
        self.headers = dict(headers or {})
        if host:
            self.headers["Host"] = host
        self.cookies = cookies
        self.method = method
        self.timeout = timeout
        self.verify = verify
        self.allow_redirects = allow_redirects
        self.include_status = include_status

    def __call__(self):
        try:
            sender = self.session if self.session is not None else requests
            response = sender.request(self.method, self.url,
                                      headers=self.headers,
                                      cookies=self.cookies,
                                      timeout=self.timeout,
                                      verify=self.verify,
                                      allow_redirects=self.allow_redirects)
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema) as e:
            raise OperationUnavailable(f"Invalid URL {self.url}: {e}")
        except requests.exceptions.RequestException as e:
            raise OperationError(f"{self.method} {self.url} failed: {e}", output=str(e))

        output = response.text.strip()
        if self.include_status:
            output = f"{response.status_code} {output}"
        return output
