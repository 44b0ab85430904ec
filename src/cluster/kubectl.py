import json
import subprocess

from functions import (
    AdmissionError,
    ClientUnavailable,
    ClusterError,
    Functions,
    ResourceNotFound,
    logger_cluster,
)

from .interface import ClusterInterface, split_ref


class Kubectl(ClusterInterface):
    """Cluster client driving ``kubectl`` (or ``oc``) and translating exit codes/stderr into the error taxonomy."""

    NOT_FOUND_MARKERS = ("NotFound", "not found")
    ADMISSION_MARKERS = (
        "is invalid",
        "Invalid value",
        "Unsupported value",
        "Required value",
        "admission webhook",
        "denied the request",
        "AlreadyExists",
        "already exists",
        "Forbidden",
        "forbidden",
    )
    WRITE_VERBS = ("create", "apply", "patch", "annotate", "label", "set")

    def __init__(self, kubectl="kubectl", kubeconfig=None, context=None, timeout=60):
        self.kubectl = kubectl
        self.kubeconfig = kubeconfig
        self.context = context
        self.timeout = timeout

    def _command(self, args):
        command = [self.kubectl]
        if self.kubeconfig:
            command.extend(["--kubeconfig", self.kubeconfig])
        if self.context:
            command.extend(["--context", self.context])
        return command + list(args)

    def run(self, args, stdin=None):
        command = self._command(args)
        try:
            return_code, stdout, stderr = Functions.run_bash(logger_cluster, command, stdin=stdin, timeout=self.timeout)
        except FileNotFoundError:
            raise ClientUnavailable(f"Cluster client '{self.kubectl}' was not found in PATH")
        except subprocess.TimeoutExpired:
            raise ClusterError(f"'{' '.join(args[:2])}' did not finish within {self.timeout}s", command=command)

        if return_code != 0:
            raise self._classify(args[0], stderr or stdout, command)
        return stdout

    def _classify(self, verb, message, command):
        message = message.strip() or f"exited with non-zero status running {verb}"
        if any(marker in message for marker in self.NOT_FOUND_MARKERS) and verb not in ("create", "apply"):
            return ResourceNotFound(message, command=command, output=message)
        if verb in self.WRITE_VERBS and any(marker in message for marker in self.ADMISSION_MARKERS):
            return AdmissionError(message, command=command, output=message)
        return ClusterError(message, command=command, output=message)

    @staticmethod
    def _namespaced(namespace):
        return ["-n", namespace] if namespace else []

    def get_object(self, kind, name=None, namespace=None):
        kind, name = split_ref(kind, name)
        if not name:
            raise ValueError(f"A resource name is required to get '{kind}'")
        output = self.run(["get", kind, name, *self._namespaced(namespace), "-o", "json"])
        return json.loads(output)

    def get(self, kind, name=None, namespace=None, path=None):
        """With ``path`` kubectl renders it itself, so ``{range}...{end}`` and the rest of its syntax work."""
        if path is None:
            return self.get_object(kind, name, namespace)
        kind, name = split_ref(kind, name)
        if not name:
            raise ValueError(f"A resource name is required to get '{kind}'")
        output = self.run(["get", kind, name, *self._namespaced(namespace), "-o", f"jsonpath={path}"])
        logger_cluster.debug(f"{kind}/{name} {path} -> {output}")
        return output

    def list_objects(self, kind, namespace=None, label_selector=None):
        args = ["get", kind, *self._namespaced(namespace), "-o", "json"]
        if label_selector:
            args.extend(["-l", label_selector])
        return json.loads(self.run(args)).get("items", [])

    def create(self, manifest, namespace=None):
        if not isinstance(manifest, str):
            manifest = json.dumps(manifest)
        output = self.run(["create", *self._namespaced(namespace), "-f", "-"], stdin=manifest)
        logger_cluster.info(output)
        return output

    def patch(self, kind, name=None, namespace=None, patch=None, patch_type="merge"):
        if patch_type not in self.PATCH_TYPES:
            raise ValueError(f"Unknown patch type '{patch_type}', expected one of {self.PATCH_TYPES}")
        kind, name = split_ref(kind, name)
        body = json.dumps(self._patch_body(patch))
        output = self.run(["patch", f"{kind}/{name}", *self._namespaced(namespace), f"--type={patch_type}", "-p", body])
        logger_cluster.info(output)
        return output

    def delete(self, kind, name=None, namespace=None, ignore_not_found=True):
        kind, name = split_ref(kind, name)
        args = ["delete", kind, name, *self._namespaced(namespace)]
        if ignore_not_found:
            args.append("--ignore-not-found")
        return self.run(args)

    def exec(self, pod, namespace, command):
        return self.run(["exec", *self._namespaced(namespace), pod, "--", *command])

    def logs(self, namespace, pod=None, label_selector=None, tail=None):
        args = ["logs", *self._namespaced(namespace)]
        if pod:
            args.append(pod)
        elif label_selector:
            args.extend(["-l", label_selector])
        else:
            raise ValueError("Either pod or label_selector is required to read logs")
        if tail is not None:
            args.append(f"--tail={tail}")
        return self.run(args)
