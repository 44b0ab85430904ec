import time
from dataclasses import dataclass
from typing import Any

from functions import (
    AdmissionError,
    ClusterError,
    ConditionViolated,
    Consts,
    DeadlineExceeded,
    ResourceNotFound,
    SuiteEnv,
    logger_conformance,
)

from .matching import Matcher, MatchMode


@dataclass
class PollResult:
    value: Any       # the matched observation (matched substring for regex polls)
    attempts: int
    elapsed: float


class ConditionPoller:
    """
    Re-evaluates an observation until it matches an expectation or the deadline passes.

    The first observation runs immediately. Between observations the poller sleeps for
    ``interval`` (cut short at the deadline), so a poll that never matches fails after at
    least ``timeout`` and at most ``timeout + interval`` seconds.

    A ``ClusterError`` raised by ``observe`` is a transient observation error: it counts as
    "no match yet" and is retried. Admission errors are never retried: they propagate, unless
    the poll matches on errors and the rejection message is the expected one.
    """

    def __init__(self, interval=None, timeout=None, clock=time.monotonic, sleep=time.sleep):
        self.interval = Consts.POLL_INTERVAL if interval is None else interval
        self.timeout = Consts.POLL_TIMEOUT if timeout is None else timeout
        self.clock = clock
        self.sleep = sleep

    @staticmethod
    def from_env(env=None):
        """Poller using CONFORMANCE_POLL_INTERVAL / CONFORMANCE_POLL_TIMEOUT."""
        env = env if env is not None else SuiteEnv.read()
        return ConditionPoller(interval=env["poll"]["interval"], timeout=env["poll"]["timeout"])

    def poll(self, observe, expect, interval=None, timeout=None, mode=MatchMode.EQUALS,
             match_errors=False, description=None) -> PollResult:
        """
        Args:
            observe: zero-argument read of cluster state
            expect: expected value, pattern or Matcher
            mode: match mode applied when ``expect`` is not already a Matcher
            match_errors: also compare the message of a failed observation against ``expect``;
                an admission rejection that does not match is raised at once
        """
        matcher = Matcher.coerce(expect, mode)

        def evaluate(value, error):
            if error is not None:
                text = str(error)
                if match_errors and matcher.matches(text):
                    return True, matcher.find(text), text
                return False, None, f"<error: {text}>"
            if matcher.matches(value):
                return True, matcher.find(value), value
            return False, None, value

        return self._loop(observe, evaluate, str(matcher), interval, timeout, description, match_admission=match_errors)

    def poll_equals(self, observe, expected, interval=None, timeout=None, description=None):
        return self.poll(observe, expected, interval, timeout, MatchMode.EQUALS, description=description)

    def poll_contains(self, observe, expected, interval=None, timeout=None, description=None):
        return self.poll(observe, expected, interval, timeout, MatchMode.CONTAINS, description=description)

    def poll_regex(self, observe, pattern, interval=None, timeout=None, description=None):
        return self.poll(observe, pattern, interval, timeout, MatchMode.REGEX, description=description)

    def poll_absent(self, observe, interval=None, timeout=None, description=None) -> PollResult:
        """Succeed once ``observe`` raises ResourceNotFound."""
        def evaluate(value, error):
            if isinstance(error, ResourceNotFound):
                return True, str(error), str(error)
            if error is not None:
                return False, None, f"<error: {error}>"
            return False, None, value

        return self._loop(observe, evaluate, "resource to be absent", interval, timeout, description)

    def poll_error(self, observe, pattern, interval=None, timeout=None, description=None) -> PollResult:
        """Succeed once ``observe`` fails with a cluster error whose message matches ``pattern``."""
        matcher = Matcher.coerce(pattern, MatchMode.REGEX)

        def evaluate(value, error):
            if error is None:
                return False, None, value
            text = str(error)
            if matcher.matches(text):
                return True, text, text
            return False, None, f"<error: {text}>"

        return self._loop(observe, evaluate, f"an error that {matcher}", interval, timeout, description, match_admission=True)

    def hold(self, observe, expect, duration, interval=None, mode=MatchMode.EQUALS, description=None) -> PollResult:
        """
        Require every observation during ``duration`` to match.

        Raises ConditionViolated on the first observation that does not. Transient
        observation errors are neither evidence for nor against and are skipped.
        """
        matcher = Matcher.coerce(expect, mode)
        interval = self.interval if interval is None else interval
        what = description or getattr(observe, "__name__", "observation")
        start = self.clock()
        deadline = start + duration
        attempts = 0
        value = None

        while True:
            attempts += 1
            try:
                value = observe()
            except AdmissionError:
                raise
            except ClusterError as e:
                logger_conformance.info(f"{what}: observation failed ({e}), ignoring while holding")
            else:
                if not matcher.matches(value):
                    raise ConditionViolated(str(matcher), value, self.clock() - start, attempts)

            now = self.clock()
            if now >= deadline:
                logger_conformance.info(f"{what}: {matcher} held for {now - start:.1f}s ({attempts} attempt(s))")
                return PollResult(value, attempts, now - start)
            self.sleep(min(interval, deadline - now))

    def _loop(self, observe, evaluate, expected, interval, timeout, description, match_admission=False):
        interval = self.interval if interval is None else interval
        timeout = self.timeout if timeout is None else timeout
        what = description or getattr(observe, "__name__", "observation")
        start = self.clock()
        deadline = start + timeout
        attempts = 0
        last_observed = None

        while True:
            attempts += 1
            try:
                value, error = observe(), None
            except AdmissionError as e:
                if not match_admission:
                    raise
                value, error = None, e
            except ClusterError as e:
                value, error = None, e

            done, found, last_observed = evaluate(value, error)
            if not done and isinstance(error, AdmissionError):
                raise error
            now = self.clock()
            if done:
                logger_conformance.info(f"{what}: got {expected} after {attempts} attempt(s)")
                return PollResult(found, attempts, now - start)

            if now >= deadline:
                logger_conformance.error(f"{what}: max time reached, expected {expected} but got {last_observed!r}")
                raise DeadlineExceeded(expected, last_observed, now - start, timeout, attempts)

            logger_conformance.info(f"{what}: expected {expected} but got {last_observed!r}, retrying...")
            self.sleep(min(interval, deadline - now))
