import os

from .consts import Consts
from .functions import Functions


class SuiteEnv:
    KUBECTL: str = "kubectl"
    API: str = "api"

    @staticmethod
    def read():
        """
        Read the suite configuration from environment variables.

        Returns:
            Dict with configuration settings
        """
        env_vars = {
            "client": os.getenv("CONFORMANCE_CLIENT", SuiteEnv.KUBECTL).lower(),
            "kubectl": os.getenv("CONFORMANCE_KUBECTL") if os.getenv("CONFORMANCE_KUBECTL") else "kubectl",
            "kubeconfig": os.getenv("KUBECONFIG") or None,
            "context": os.getenv("CONFORMANCE_KUBE_CONTEXT") or None,
            "namespace": os.getenv("CONFORMANCE_NAMESPACE") if os.getenv("CONFORMANCE_NAMESPACE") else "default",
            "operator_namespace": os.getenv("CONFORMANCE_OPERATOR_NAMESPACE", Consts.OPERATOR_NAMESPACE),
            "router_namespace": os.getenv("CONFORMANCE_ROUTER_NAMESPACE", Consts.ROUTER_NAMESPACE),
            "client_timeout": SuiteEnv._seconds("CONFORMANCE_CLIENT_TIMEOUT", Consts.CLIENT_TIMEOUT),
        }

        env_vars["poll"] = {
            "interval": SuiteEnv._seconds("CONFORMANCE_POLL_INTERVAL", Consts.POLL_INTERVAL),
            "timeout": SuiteEnv._seconds("CONFORMANCE_POLL_TIMEOUT", Consts.POLL_TIMEOUT),
        }

        env_vars["logLevel"] = {
            "conformance": os.getenv("CONFORMANCE_LOG_LEVEL") if os.getenv(
                "CONFORMANCE_LOG_LEVEL") else Functions.INFO,
            "cluster": os.getenv("CLUSTER_LOG_LEVEL") if os.getenv("CLUSTER_LOG_LEVEL") else Functions.INFO,
            "traffic": os.getenv("TRAFFIC_LOG_LEVEL") if os.getenv("TRAFFIC_LOG_LEVEL") else Functions.INFO,
        }

        return env_vars

    @staticmethod
    def _seconds(name, default):
        value = os.getenv(name)
        if value is None or value.strip() == "":
            return default
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"{name} must be a number of seconds, got '{value}'")
