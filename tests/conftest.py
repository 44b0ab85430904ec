"""
Pytest configuration and fixtures for the conformance engine tests.

Nothing here talks to a cluster: the fake clock makes poll deadlines deterministic and the
fake cluster keeps resources in memory.
"""

import copy
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from cluster import ClusterContext, ClusterInterface, split_ref  # noqa: E402
from functions import AdmissionError, ResourceNotFound  # noqa: E402


_SUITE_ENV_VARS = [
    "CONFORMANCE_CLIENT",
    "CONFORMANCE_KUBECTL",
    "CONFORMANCE_KUBE_CONTEXT",
    "CONFORMANCE_NAMESPACE",
    "CONFORMANCE_OPERATOR_NAMESPACE",
    "CONFORMANCE_ROUTER_NAMESPACE",
    "CONFORMANCE_POLL_INTERVAL",
    "CONFORMANCE_POLL_TIMEOUT",
    "CONFORMANCE_CLIENT_TIMEOUT",
    "CONFORMANCE_TEMPLATES_PATH",
    "CONFORMANCE_LOG_LEVEL",
    "CLUSTER_LOG_LEVEL",
    "TRAFFIC_LOG_LEVEL",
]


@pytest.fixture(scope="function", autouse=True)
def reset_consts():
    """Reset Consts and the suite environment variables before and after each test."""
    from functions import Consts
    Consts.reset()
    for var in _SUITE_ENV_VARS:
        os.environ.pop(var, None)
    yield
    Consts.reset()
    for var in _SUITE_ENV_VARS:
        os.environ.pop(var, None)


class FakeClock:
    """Monotonic clock that only moves when the code under test sleeps."""

    def __init__(self, now=1000.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    @property
    def elapsed(self):
        return sum(self.sleeps)


class FakeCluster(ClusterInterface):
    """
    In-memory cluster client.

    Objects are stored by (kind, namespace, name) with kinds lower-cased. ``reject`` maps a
    kind to an admission message, ``exec_results`` queues outputs (or exceptions) per pod.
    """

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.reject = {}
        self.exec_results = {}
        self.log_text = {}

    def put(self, obj, namespace=None):
        obj = copy.deepcopy(obj)
        kind = obj["kind"].lower()
        namespace = namespace or obj.get("metadata", {}).get("namespace")
        self.objects[(kind, namespace, obj["metadata"]["name"])] = obj
        return obj

    def _key(self, kind, name, namespace):
        return kind.lower(), namespace, name

    def get_object(self, kind, name=None, namespace=None):
        kind, name = split_ref(kind, name)
        self.calls.append(("get", kind, name, namespace))
        try:
            return copy.deepcopy(self.objects[self._key(kind, name, namespace)])
        except KeyError:
            raise ResourceNotFound(f"{kind}.{name} \"{name}\" not found")

    def list_objects(self, kind, namespace=None, label_selector=None):
        wanted = dict(part.split("=", 1) for part in label_selector.split(",")) if label_selector else {}
        found = []
        for (k, ns, _), obj in sorted(self.objects.items(), key=lambda item: tuple(str(p) for p in item[0])):
            if k != kind.lower() or (namespace is not None and ns != namespace):
                continue
            labels = obj.get("metadata", {}).get("labels") or {}
            if all(labels.get(key) == value for key, value in wanted.items()):
                found.append(copy.deepcopy(obj))
        return found

    def create(self, manifest, namespace=None):
        kind = manifest["kind"].lower()
        self.calls.append(("create", kind, manifest["metadata"]["name"], namespace))
        if kind in self.reject:
            raise AdmissionError(self.reject[kind])
        obj = self.put(manifest, namespace)
        obj.setdefault("metadata", {}).setdefault("generation", 1)
        return f"{kind}/{manifest['metadata']['name']} created"

    def patch(self, kind, name=None, namespace=None, patch=None, patch_type="merge"):
        kind, name = split_ref(kind, name)
        self.calls.append(("patch", kind, name, namespace))
        obj = self.objects.get(self._key(kind, name, namespace))
        if obj is None:
            raise ResourceNotFound(f"{kind}.{name} \"{name}\" not found")
        body = self._patch_body(patch)
        before = copy.deepcopy(obj.get("spec"))
        _merge(obj, body)
        if obj.get("spec") != before:
            obj["metadata"]["generation"] = obj["metadata"].get("generation", 1) + 1
        return f"{kind}/{name} patched"

    def delete(self, kind, name=None, namespace=None, ignore_not_found=True):
        kind, name = split_ref(kind, name)
        self.calls.append(("delete", kind, name, namespace))
        if self.objects.pop(self._key(kind, name, namespace), None) is None and not ignore_not_found:
            raise ResourceNotFound(f"{kind}.{name} \"{name}\" not found")
        return ""

    def exec(self, pod, namespace, command):
        self.calls.append(("exec", pod, namespace, tuple(command)))
        queue = self.exec_results.get(pod)
        if not queue:
            raise ResourceNotFound(f"pods \"{pod}\" not found")
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(result, Exception):
            raise result
        return result

    def logs(self, namespace, pod=None, label_selector=None, tail=None):
        self.calls.append(("logs", namespace, pod or label_selector, tail))
        return self.log_text.get(pod or label_selector, "")


def _merge(target, patch):
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_cluster():
    return FakeCluster()


@pytest.fixture
def context(fake_cluster):
    return ClusterContext(client=fake_cluster, namespace="e2e-test")
