import os
from pathlib import Path


class classproperty:
    """Decorator for class-level properties."""
    def __init__(self, func):
        self.func = func

    def __get__(self, obj, owner):
        return self.func(owner)


class Consts:
    """Engine defaults with dynamic template path resolution based on CONFORMANCE_TEMPLATES_PATH."""
    _templates_path = None

    @classproperty
    def templates_path(cls):
        """Directory searched for resource templates given by bare file name."""
        if cls._templates_path is None:
            if os.getenv("CONFORMANCE_TEMPLATES_PATH"):
                default = os.getenv("CONFORMANCE_TEMPLATES_PATH")
            else:
                default = str(Path(__file__).resolve().parent.parent / "conformance" / "templates")
            cls._templates_path = default
        return cls._templates_path

    @classmethod
    def reset(cls):
        """Reset cached paths to pick up environment variable changes."""
        cls._templates_path = None

    OPERATOR_NAMESPACE = "openshift-ingress-operator"
    ROUTER_NAMESPACE = "openshift-ingress"
    ROUTER_DEPLOYMENT_PREFIX = "deployment/router-"
    ROUTER_POD_LABEL = "ingresscontroller.operator.openshift.io/deployment-ingresscontroller"
    ROUTER_CONFIG_PATH = "haproxy.config"

    # Seconds
    POLL_INTERVAL = 5
    POLL_TIMEOUT = 180
    GENERATION_INTERVAL = 3
    GENERATION_TIMEOUT = 30
    GENERATION_HOLD = 15
    DISAPPEAR_INTERVAL = 20
    DISAPPEAR_TIMEOUT = 300
    BLOCK_INTERVAL = 5
    BLOCK_TIMEOUT = 60
    BLOCK_ABSENT_TIMEOUT = 30
    LOGS_INTERVAL = 3
    LOGS_TIMEOUT = 90
    LOGS_TAIL = 20
    SAMPLE_TIMEOUT = 300
    CLIENT_TIMEOUT = 60

    # Relative band around the weighted expectation; tuned for test runtime, not statistical rigor
    WEIGHT_TOLERANCE = 0.25
