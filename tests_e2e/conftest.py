"""
Shared pytest fixtures for the live-cluster scenarios.

These tests need a cluster with the ingress operator installed and a kubeconfig with
cluster-admin rights. They are skipped unless CONFORMANCE_E2E=true.
"""

import os
import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).parent.absolute()
sys.path.insert(0, str(BASE_DIR.parent / "src"))

from cluster import ClusterContext  # noqa: E402
from conformance import WebServerDeployDescriptor  # noqa: E402
from conformance.status import wait_for_pods_ready  # noqa: E402
from functions import Functions  # noqa: E402


def pytest_collection_modifyitems(config, items):
    if os.getenv("CONFORMANCE_E2E", "").lower() == "true":
        return
    skip = pytest.mark.skip(reason="set CONFORMANCE_E2E=true to run against a live cluster")
    for item in items:
        if BASE_DIR in Path(str(item.fspath)).parents:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def cluster():
    """Context built from CONFORMANCE_* variables; the namespace is replaced per test."""
    return ClusterContext.from_env()


@pytest.fixture
def context(cluster):
    namespace = Functions.random_name("e2e-test-router-")
    cluster.client.create({"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": namespace}})
    yield cluster.with_namespace(namespace)
    cluster.client.delete("namespace", namespace)


@pytest.fixture
def web_server(context):
    """Two backend pods behind service-secure/service-unsecure."""
    web = WebServerDeployDescriptor("web-server-deploy", replicas=2)
    web.create(context)
    pods = wait_for_pods_ready(context, "name=web-server-deploy")
    yield pods
    web.delete(context)
