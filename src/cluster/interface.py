import json
from dataclasses import dataclass, replace
from typing import Final

from functions import Consts, JsonPath, SuiteEnv, logger_cluster


def split_ref(kind, name=None):
    """Accept either ``("deployment", "router-default")`` or ``("deployment/router-default", None)``."""
    if name is None and "/" in kind:
        kind, name = kind.split("/", 1)
    return kind, name


class ClusterInterface:
    KUBECTL: Final[str] = SuiteEnv.KUBECTL
    API: Final[str] = SuiteEnv.API

    PATCH_TYPES: Final[tuple] = ("merge", "json", "strategic")

    @staticmethod
    def factory(mode, env=None):
        from .kubectl import Kubectl
        from .kubernetes import KubernetesApi

        env = env if env is not None else SuiteEnv.read()
        if mode == ClusterInterface.KUBECTL:
            return Kubectl(kubectl=env["kubectl"],
                           kubeconfig=env["kubeconfig"],
                           context=env["context"],
                           timeout=env["client_timeout"])
        elif mode == ClusterInterface.API:
            return KubernetesApi(kubeconfig=env["kubeconfig"], context=env["context"])
        else:
            raise ValueError(f"Expected client to be 'kubectl' or 'api'. I got '{mode}'")

    def get_object(self, kind, name=None, namespace=None):
        raise NotImplementedError

    def list_objects(self, kind, namespace=None, label_selector=None):
        raise NotImplementedError

    def create(self, manifest, namespace=None):
        raise NotImplementedError

    def patch(self, kind, name=None, namespace=None, patch=None, patch_type="merge"):
        raise NotImplementedError

    def delete(self, kind, name=None, namespace=None, ignore_not_found=True):
        raise NotImplementedError

    def exec(self, pod, namespace, command):
        raise NotImplementedError

    def logs(self, namespace, pod=None, label_selector=None, tail=None):
        raise NotImplementedError

    def get(self, kind, name=None, namespace=None, path=None):
        """Read a resource; with ``path`` the result is rendered like ``-o jsonpath=<path>``."""
        obj = self.get_object(kind, name, namespace)
        if path is None:
            return obj
        output = JsonPath(path).render(obj)
        logger_cluster.debug(f"{split_ref(kind, name)} {path} -> {output}")
        return output

    def annotate(self, kind, name=None, namespace=None, annotations=None):
        return self.patch(kind, name, namespace, {"metadata": {"annotations": dict(annotations or {})}}, "merge")

    @staticmethod
    def _patch_body(patch):
        if isinstance(patch, (dict, list)):
            return patch
        return json.loads(patch)


@dataclass(frozen=True)
class ClusterContext:
    """Everything a step needs to talk to the cluster; passed explicitly, never stored globally."""
    client: ClusterInterface
    namespace: str = "default"
    operator_namespace: str = Consts.OPERATOR_NAMESPACE
    router_namespace: str = Consts.ROUTER_NAMESPACE

    @staticmethod
    def from_env(env=None):
        env = env if env is not None else SuiteEnv.read()
        return ClusterContext(client=ClusterInterface.factory(env["client"], env),
                              namespace=env["namespace"],
                              operator_namespace=env["operator_namespace"],
                              router_namespace=env["router_namespace"])

    def with_namespace(self, namespace):
        return replace(self, namespace=namespace)
