import os
from unittest.mock import patch

import pytest

from cluster import ClusterContext, ClusterInterface, Kubectl
from functions import Consts, SuiteEnv


def test_suite_env_defaults():
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("KUBECONFIG", None)
        env = SuiteEnv.read()

    assert env == {
        "client": "kubectl",
        "kubectl": "kubectl",
        "kubeconfig": None,
        "context": None,
        "namespace": "default",
        "operator_namespace": Consts.OPERATOR_NAMESPACE,
        "router_namespace": Consts.ROUTER_NAMESPACE,
        "client_timeout": Consts.CLIENT_TIMEOUT,
        "poll": {
            "interval": Consts.POLL_INTERVAL,
            "timeout": Consts.POLL_TIMEOUT,
        },
        "logLevel": {
            "conformance": "INFO",
            "cluster": "INFO",
            "traffic": "INFO",
        },
    }


def test_suite_env_overrides():
    os.environ["CONFORMANCE_CLIENT"] = "API"
    os.environ["CONFORMANCE_KUBECTL"] = "/usr/bin/oc"
    os.environ["CONFORMANCE_KUBE_CONTEXT"] = "admin"
    os.environ["CONFORMANCE_NAMESPACE"] = "e2e-test-router"
    os.environ["CONFORMANCE_ROUTER_NAMESPACE"] = "custom-ingress"
    os.environ["CONFORMANCE_POLL_INTERVAL"] = "0.5"
    os.environ["CONFORMANCE_POLL_TIMEOUT"] = "30"
    os.environ["CLUSTER_LOG_LEVEL"] = "DEBUG"

    env = SuiteEnv.read()
    assert env["client"] == "api"
    assert env["kubectl"] == "/usr/bin/oc"
    assert env["context"] == "admin"
    assert env["namespace"] == "e2e-test-router"
    assert env["router_namespace"] == "custom-ingress"
    assert env["operator_namespace"] == Consts.OPERATOR_NAMESPACE
    assert env["poll"] == {"interval": 0.5, "timeout": 30.0}
    assert env["logLevel"]["cluster"] == "DEBUG"
    assert env["logLevel"]["conformance"] == "INFO"


def test_suite_env_rejects_non_numeric_seconds():
    os.environ["CONFORMANCE_POLL_TIMEOUT"] = "three minutes"
    with pytest.raises(ValueError, match="CONFORMANCE_POLL_TIMEOUT"):
        SuiteEnv.read()


def test_factory_selects_kubectl():
    env = SuiteEnv.read()
    env["kubectl"] = "oc"
    client = ClusterInterface.factory(ClusterInterface.KUBECTL, env)
    assert isinstance(client, Kubectl)
    assert client.kubectl == "oc"


def test_factory_rejects_unknown_client():
    with pytest.raises(ValueError, match="'curl'"):
        ClusterInterface.factory("curl", SuiteEnv.read())


def test_cluster_context_from_env():
    os.environ["CONFORMANCE_NAMESPACE"] = "e2e-test-router"
    context = ClusterContext.from_env()
    assert isinstance(context.client, Kubectl)
    assert context.namespace == "e2e-test-router"
    assert context.operator_namespace == Consts.OPERATOR_NAMESPACE

    other = context.with_namespace("another")
    assert other.namespace == "another"
    assert other.client is context.client
    assert context.namespace == "e2e-test-router"
