import pytest

from functions import JsonPath, JsonPathError

INGRESS_CONTROLLER = {
    "apiVersion": "operator.openshift.io/v1",
    "kind": "IngressController",
    "metadata": {
        "name": "ocp12345",
        "generation": 3,
        "annotations": {
            "haproxy.router.openshift.io/timeout": "5s",
        },
    },
    "spec": {"replicas": 2, "domain": "ocp12345.apps.example.com"},
    "status": {
        "conditions": [
            {"type": "Admitted", "status": "True"},
            {"type": "Available", "status": "True", "reason": "AsExpected"},
            {"type": "Degraded", "status": "False"},
        ],
        "ready": True,
    },
}


def test_simple_paths():
    assert JsonPath("{.metadata.name}").render(INGRESS_CONTROLLER) == "ocp12345"
    assert JsonPath(".spec.replicas").render(INGRESS_CONTROLLER) == "2"
    assert JsonPath("{.metadata.generation}").render(INGRESS_CONTROLLER) == "3"
    assert JsonPath("{.status.ready}").render(INGRESS_CONTROLLER) == "true"


def test_missing_fields_render_empty():
    assert JsonPath("{.spec.tuningOptions.maxConnections}").render(INGRESS_CONTROLLER) == ""
    assert JsonPath("{.status.conditions[10].type}").render(INGRESS_CONTROLLER) == ""


def test_escaped_dots_and_quoted_keys():
    assert JsonPath(r"{.metadata.annotations.haproxy\.router\.openshift\.io/timeout}").render(INGRESS_CONTROLLER) == "5s"
    assert JsonPath("{.metadata.annotations['haproxy.router.openshift.io/timeout']}").render(INGRESS_CONTROLLER) == "5s"


def test_indexes_slices_and_wildcards():
    assert JsonPath("{.status.conditions[0].type}").render(INGRESS_CONTROLLER) == "Admitted"
    assert JsonPath("{.status.conditions[-1].type}").render(INGRESS_CONTROLLER) == "Degraded"
    assert JsonPath("{.status.conditions[0:2].type}").render(INGRESS_CONTROLLER) == "Admitted Available"
    assert JsonPath("{.status.conditions[*].status}").render(INGRESS_CONTROLLER) == "True True False"


def test_filters():
    path = '{.status.conditions[?(@.type=="Available")].status}'
    assert JsonPath(path).render(INGRESS_CONTROLLER) == "True"
    assert JsonPath('{.status.conditions[?(@.status!="True")].type}').render(INGRESS_CONTROLLER) == "Degraded"
    assert JsonPath("{.status.conditions[?(@.reason)].type}").render(INGRESS_CONTROLLER) == "Available"


def test_nested_filters_on_route_status():
    route = {"status": {"ingress": [
        {"routerName": "default", "conditions": [{"type": "Admitted", "status": "True"}]},
        {"routerName": "ocp12345", "conditions": [{"type": "Admitted", "status": "False"}]},
    ]}}
    path = '{.status.ingress[?(@.routerName=="ocp12345")].conditions[?(@.type=="Admitted")].status}'
    assert JsonPath(path).render(route) == "False"


def test_literal_text_and_structures():
    assert JsonPath("{.metadata.name}:{.spec.replicas}").render(INGRESS_CONTROLLER) == "ocp12345:2"
    assert JsonPath("{.spec}").render(INGRESS_CONTROLLER) == '{"domain":"ocp12345.apps.example.com","replicas":2}'


def test_find_returns_raw_values():
    assert JsonPath("{.status.conditions[*].type}").find(INGRESS_CONTROLLER) == ["Admitted", "Available", "Degraded"]
    assert JsonPath("{.spec.replicas}").find(INGRESS_CONTROLLER) == [2]


@pytest.mark.parametrize("path", [
    '{.status.conditions[?(@.type>"x")]}',
    "{range .items[*]}{.metadata.name}{end}",
    "{.status.conditions[abc]}",
    "{.metadata.name",
    "{metadata.name}",
])
def test_malformed_paths(path):
    with pytest.raises(JsonPathError):
        JsonPath(path)
