from deepdiff import DeepDiff

from functions import BlockAssertionError, Consts, logger_conformance

from .matching import AllOf, MatchMode
from .poller import ConditionPoller


def _indent(line):
    return len(line) - len(line.lstrip())


def _close(lines):
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)


class ConfigSnapshot:
    """
    A proxy configuration file as read at one point in time.

    A block starts at a line containing the marker and runs while the following lines are
    blank or indented deeper than that line, e.g. ``backend be_http:ns:route`` and its options.
    """

    def __init__(self, text, pod=None, path=None):
        self.text = text or ""
        self.pod = pod
        self.path = path

    @property
    def lines(self):
        return self.text.splitlines()

    def block(self, marker) -> str:
        """First block for ``marker``, or an empty string when no line contains it."""
        found = self._scan(marker, limit=1)
        return found[0] if found else ""

    def blocks(self, marker) -> list:
        return self._scan(marker)

    def _scan(self, marker, limit=None):
        found = []
        current = None
        start_indent = 0
        for line in self.lines:
            if current is not None:
                if not line.strip() or _indent(line) > start_indent:
                    current.append(line)
                    continue
                found.append(_close(current))
                current = None
                if limit and len(found) >= limit:
                    return found
            if marker in line:
                current = [line]
                start_indent = _indent(line)
        if current is not None:
            found.append(_close(current))
        return found[:limit] if limit else found

    def diff(self, other, marker=None):
        """Line-level DeepDiff from this snapshot to ``other``; empty when nothing changed."""
        if marker is None:
            return DeepDiff(self.lines, other.lines)
        return DeepDiff(self.block(marker).splitlines(), other.block(marker).splitlines())

    def __str__(self):
        return self.text


def _check(block, expectations, mode, marker):
    expected = AllOf(expectations, mode)
    failures = expected.failures(block)
    if not block and not mode.negated:
        failures.insert(0, "block not found")
    if failures:
        raise BlockAssertionError(marker or "", failures, block)
    return block


def assert_contains(block, expectations, marker=None):
    return _check(block, expectations, MatchMode.CONTAINS, marker)


def assert_matches(block, expectations, marker=None):
    return _check(block, expectations, MatchMode.REGEX, marker)


def assert_not_contains(block, expectations, marker=None):
    return _check(block, expectations, MatchMode.NOT_CONTAINS, marker)


def assert_not_matches(block, expectations, marker=None):
    return _check(block, expectations, MatchMode.NOT_REGEX, marker)


class ConfigInspector:
    """Reads the proxy configuration from a router pod and waits on parts of it."""

    def __init__(self, context, pod, namespace=None, path=Consts.ROUTER_CONFIG_PATH, poller=None):
        self.context = context
        self.pod = pod
        self.namespace = namespace or context.router_namespace
        self.path = path
        self.poller = poller or ConditionPoller(interval=Consts.BLOCK_INTERVAL, timeout=Consts.BLOCK_TIMEOUT)

    def fetch(self) -> ConfigSnapshot:
        text = self.context.client.exec(self.pod, self.namespace, ["cat", self.path])
        return ConfigSnapshot(text, self.pod, self.path)

    def fetch_block(self, marker) -> str:
        block = self.fetch().block(marker)
        logger_conformance.debug(f"Block '{marker}' of {self.pod}:{self.path}:\n{block}")
        return block

    def wait_block(self, marker, expectations, mode=MatchMode.CONTAINS, interval=None, timeout=None) -> str:
        """
        Poll the block until every expectation holds on the same read.

        Negated modes wait for the block to stop carrying the given lines.
        """
        mode = MatchMode(mode)
        expected = AllOf(expectations, mode)
        if mode.negated and timeout is None:
            timeout = Consts.BLOCK_ABSENT_TIMEOUT
        result = self.poller.poll(lambda: self.fetch_block(marker), expected, interval, timeout,
                                  description=f"block '{marker}' of {self.pod}")
        return result.value

    def wait_for_change(self, previous, marker=None, interval=None, timeout=None) -> ConfigSnapshot:
        """Poll until the configuration (or one block of it) differs from ``previous``."""
        latest = []

        def observe():
            snapshot = self.fetch()
            latest.append(snapshot)
            return snapshot.block(marker) if marker else snapshot.text

        unchanged = previous.block(marker) if marker else previous.text
        self.poller.poll(observe, unchanged, interval, timeout, MatchMode.NOT_EQUALS,
                         description=f"{self.path} of {self.pod} to change")
        logger_conformance.info(f"{self.path} changed: {previous.diff(latest[-1], marker)}")
        return latest[-1]
