"""Helpers shared by the live-cluster scenarios."""

from conformance import PodExecOperation
from conformance.status import wait_for_pods_ready

CLIENT_POD = {
    "apiVersion": "v1",
    "kind": "Pod",
    "metadata": {"name": "hello-pod", "labels": {"app": "hello-pod"}},
    "spec": {
        "containers": [{
            "name": "hello-pod",
            "image": "quay.io/openshifttest/hello-sdn@sha256:c89445416459e7adea9a5a416b3365ed3d74f2491beb904d61dc8d1eb89a72a4",
        }],
    },
}


def create_client_pod(context):
    context.client.create(CLIENT_POD, context.namespace)
    return wait_for_pods_ready(context, "app=hello-pod")[0]


def curl_through_router(context, client_pod, host, router_ip, path="/", cookie_jar=None, extra=()):
    """curl a route host through one router, from inside the cluster."""
    command = ["curl", "-s", "--connect-timeout", "10", f"http://{host}{path}",
               "--resolve", f"{host}:80:{router_ip}"]
    if cookie_jar:
        command.extend(["-b", cookie_jar, "-c", cookie_jar])
    command.extend(extra)
    return PodExecOperation(context, client_pod, command)


def router_pod_ip(context, pod):
    return context.client.get("pod", pod, context.router_namespace, "{.status.podIP}")

