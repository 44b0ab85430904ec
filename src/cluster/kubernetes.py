import json

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.stream import stream
from urllib3.exceptions import HTTPError

from functions import (
    AdmissionError,
    ClientUnavailable,
    ClusterError,
    ResourceNotFound,
    logger_cluster,
)

from .interface import ClusterInterface, split_ref


class KubernetesApi(ClusterInterface):
    """Cluster client talking to the API server through the official python client."""

    ADMISSION_STATUS = (400, 403, 409, 422)
    PREFERRED_GROUPS = ("", "apps", "batch", "networking.k8s.io", "route.openshift.io",
                        "operator.openshift.io", "gateway.networking.k8s.io")
    CONTENT_TYPES = {
        "merge": "application/merge-patch+json",
        "json": "application/json-patch+json",
        "strategic": "application/strategic-merge-patch+json",
    }

    def __init__(self, kubeconfig=None, context=None, api_client=None, dynamic=None, core=None, timeout=60):
        # Only load config if API clients are not provided (allows dependency injection for testing)
        if api_client is None and (dynamic is None or core is None):
            try:
                config.load_kube_config(config_file=kubeconfig, context=context)
            except config.ConfigException:
                try:
                    config.load_incluster_config()
                except config.ConfigException as e:
                    raise ClientUnavailable(f"No usable kubeconfig or in-cluster configuration: {e}")

        self.api_client = api_client or client.ApiClient()
        self.dynamic = dynamic or DynamicClient(self.api_client)
        self.core = core or client.CoreV1Api(self.api_client)
        self.timeout = timeout

    def _resource(self, kind, api_version=None):
        """
        Find the API resource for a kind, plural, singular or short name.

        ``ingress.networking.k8s.io`` pins the group. A bare name found in several groups
        resolves the way kubectl does: core and the built-in groups first.
        """
        name, _, group = kind.lower().partition(".")
        search = {"api_version": api_version} if api_version else {}
        candidates = []
        for resource in self.dynamic.resources.search(**search):
            names = [resource.name, resource.singular_name, (resource.kind or "").lower()]
            names.extend(resource.short_names or [])
            if name in names and (not group or (resource.group or "") == group):
                candidates.append(resource)
        if not candidates:
            raise ClusterError(f"The server doesn't have a resource type \"{kind.lower()}\"")
        return min(candidates, key=self._group_rank)

    def _group_rank(self, resource):
        group = resource.group or ""
        if group in self.PREFERRED_GROUPS:
            return self.PREFERRED_GROUPS.index(group)
        return len(self.PREFERRED_GROUPS)

    def _translate(self, error, verb, target):
        if isinstance(error, HTTPError):
            return ClusterError(f"{verb} {target}: {error}")

        message = error.reason or ""
        if error.body:
            try:
                message = json.loads(error.body).get("message", message)
            except (TypeError, ValueError):
                message = str(error.body)
        message = f"{verb} {target}: {message}"

        if error.status == 404:
            return ResourceNotFound(message, output=message)
        if verb in ("create", "patch") and error.status in self.ADMISSION_STATUS:
            return AdmissionError(message, output=message)
        return ClusterError(message, output=message)

    def _call(self, verb, target, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ApiException, HTTPError) as e:
            raise self._translate(e, verb, target)

    def get_object(self, kind, name=None, namespace=None):
        kind, name = split_ref(kind, name)
        resource = self._resource(kind)
        obj = self._call("get", f"{kind}/{name}", resource.get, name=name, namespace=namespace)
        return obj.to_dict()

    def list_objects(self, kind, namespace=None, label_selector=None):
        resource = self._resource(kind)
        result = self._call("get", kind, resource.get, namespace=namespace, label_selector=label_selector)
        return result.to_dict().get("items", [])

    def create(self, manifest, namespace=None):
        if isinstance(manifest, str):
            manifest = json.loads(manifest)
        resource = self._resource(manifest["kind"], manifest.get("apiVersion"))
        target = f"{manifest['kind'].lower()}/{manifest.get('metadata', {}).get('name', '')}"
        if not resource.namespaced:
            namespace = None
        self._call("create", target, resource.create, body=manifest, namespace=namespace)
        output = f"{target} created"
        logger_cluster.info(output)
        return output

    def patch(self, kind, name=None, namespace=None, patch=None, patch_type="merge"):
        if patch_type not in self.CONTENT_TYPES:
            raise ValueError(f"Unknown patch type '{patch_type}', expected one of {self.PATCH_TYPES}")
        kind, name = split_ref(kind, name)
        resource = self._resource(kind)
        self._call("patch", f"{kind}/{name}", resource.patch,
                   body=self._patch_body(patch), name=name, namespace=namespace,
                   content_type=self.CONTENT_TYPES[patch_type])
        output = f"{kind}/{name} patched"
        logger_cluster.info(output)
        return output

    def delete(self, kind, name=None, namespace=None, ignore_not_found=True):
        kind, name = split_ref(kind, name)
        resource = self._resource(kind)
        try:
            self._call("delete", f"{kind}/{name}", resource.delete, name=name, namespace=namespace)
        except ResourceNotFound:
            if not ignore_not_found:
                raise
            return ""
        return f"{kind} \"{name}\" deleted"

    def exec(self, pod, namespace, command):
        target = f"pod/{pod}"
        response = self._call("exec", target, stream, self.core.connect_get_namespaced_pod_exec,
                              pod, namespace, command=list(command),
                              stderr=True, stdin=False, stdout=True, tty=False,
                              _preload_content=False)
        try:
            response.run_forever(timeout=self.timeout)
            stdout = response.read_stdout(timeout=0)
            stderr = response.read_stderr(timeout=0)
            return_code = response.returncode
        finally:
            response.close()

        if return_code:
            message = (stderr or stdout).strip() or f"command terminated with exit code {return_code}"
            raise ClusterError(f"exec {target}: {message}", output=stdout)
        return stdout.rstrip("\n")

    def logs(self, namespace, pod=None, label_selector=None, tail=None):
        if pod:
            pods = [pod]
        elif label_selector:
            pods = [p["metadata"]["name"] for p in self.list_objects("pod", namespace, label_selector)]
        else:
            raise ValueError("Either pod or label_selector is required to read logs")

        output = []
        for name in pods:
            kwargs = {"tail_lines": tail} if tail is not None else {}
            output.append(self._call("logs", f"pod/{name}", self.core.read_namespaced_pod_log, name, namespace, **kwargs))
        return "\n".join(output)
