"""Waiters for the status fields the router suites check again and again."""
from functions import ClusterError, Consts, logger_conformance

from .matching import MatchMode
from .poller import ConditionPoller

_ALL_TEXT = r"^\S.*$"


def condition_path(condition_type, field="status"):
    """``condition_path("Available")`` -> ``{.status.conditions[?(@.type=="Available")].status}``"""
    return f'{{.status.conditions[?(@.type=="{condition_type}")].{field}}}'


def wait_for_output(context, ref, path, expect, namespace=None, mode=MatchMode.EQUALS,
                    poller=None, interval=None, timeout=None):
    """Poll ``get ref -o jsonpath=path`` until it matches ``expect``."""
    poller = poller or ConditionPoller()
    namespace = namespace or context.namespace

    def observe():
        return context.client.get(ref, namespace=namespace, path=path)

    return poller.poll(observe, expect, interval, timeout, mode, description=f"{ref} {path}")


def wait_for_condition(context, ref, condition_type, status="True", namespace=None,
                       poller=None, interval=None, timeout=None):
    return wait_for_output(context, ref, condition_path(condition_type), status, namespace,
                           poller=poller, interval=interval, timeout=timeout)


def ensure_ingress_controller_available(context, name, poller=None, timeout=None):
    result = wait_for_condition(context, f"ingresscontroller/{name}", "Available",
                                namespace=context.operator_namespace, poller=poller, timeout=timeout)
    logger_conformance.info(f"Ingress controller {name} is available")
    return result


def _admitted_path(router):
    return (f'{{.status.ingress[?(@.routerName=="{router}")]'
            f'.conditions[?(@.type=="Admitted")].status}}')


def ensure_route_admitted(context, name, namespace=None, router="default", poller=None, timeout=None):
    return wait_for_output(context, f"route/{name}", _admitted_path(router), "True", namespace,
                           poller=poller, timeout=timeout)


def ensure_route_not_admitted(context, name, router, namespace=None, poller=None, timeout=None):
    """Wait until ``router`` reports the route as not admitted, e.g. when it is outside the shard."""
    return wait_for_output(context, f"route/{name}", _admitted_path(router), "False", namespace,
                           poller=poller, timeout=timeout)


def is_pod_ready(pod):
    if pod.get("metadata", {}).get("deletionTimestamp"):
        return False
    for condition in pod.get("status", {}).get("conditions") or []:
        if condition.get("type") == "Ready":
            return condition.get("status") == "True"
    return False


def ready_pod_names(client, namespace, label_selector):
    """
    Names of the selected pods, or an empty list while any of them is not Ready yet.

    Raises ClusterError when the selector matches nothing, which a poll treats as "not yet".
    """
    pods = client.list_objects("pod", namespace, label_selector)
    if not pods:
        raise ClusterError(f"No pods found with label {label_selector} in {namespace}")
    if not all(is_pod_ready(pod) for pod in pods):
        return []
    return sorted(pod["metadata"]["name"] for pod in pods)


def wait_for_pods_ready(context, label_selector, namespace=None, poller=None, timeout=None):
    """Wait until every pod with the label is Ready and return their names."""
    poller = poller or ConditionPoller()
    namespace = namespace or context.namespace

    def observe():
        return " ".join(ready_pod_names(context.client, namespace, label_selector))

    result = poller.poll(observe, _ALL_TEXT, timeout=timeout, mode=MatchMode.REGEX,
                         description=f"pods {label_selector} ready")
    return result.value.split()


def wait_for_logs_contain(context, expected, namespace=None, pod=None, label_selector=None,
                          tail=None, poller=None, timeout=None):
    poller = poller or ConditionPoller(interval=Consts.LOGS_INTERVAL, timeout=Consts.LOGS_TIMEOUT)
    namespace = namespace or context.namespace
    tail = Consts.LOGS_TAIL if tail is None else tail

    def observe():
        return context.client.logs(namespace, pod=pod, label_selector=label_selector, tail=tail)

    return poller.poll_contains(observe, expected, timeout=timeout,
                                description=f"logs of {pod or label_selector}")


def router_pod_name(context, ingress_controller="default", poller=None, timeout=None):
    """One Ready router pod of an ingress controller."""
    label_selector = f"{Consts.ROUTER_POD_LABEL}={ingress_controller}"
    pods = wait_for_pods_ready(context, label_selector, namespace=context.router_namespace,
                               poller=poller, timeout=timeout)
    logger_conformance.info(f"Router pod of {ingress_controller}: {pods[0]}")
    return pods[0]
