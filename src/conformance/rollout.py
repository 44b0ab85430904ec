from functions import ClusterError, Consts, logger_conformance

from cluster import split_ref

from .matching import MatchMode
from .poller import ConditionPoller
from .status import ready_pod_names

REVISION_ANNOTATION = "deployment.kubernetes.io/revision"


class RolloutTracker:
    """
    Correlates a mutation with the ``metadata.generation`` of a workload.

    Expectations are absolute: capture the baseline before mutating, then assert the
    generation it must reach (or must keep).
    """

    def __init__(self, context, deployment, namespace=None, poller=None):
        kind, name = split_ref(deployment)
        if name is None:
            kind, name = "deployment", deployment
        self.context = context
        self.kind = kind
        self.name = name
        self.namespace = namespace or context.namespace
        self.poller = poller or ConditionPoller(interval=Consts.GENERATION_INTERVAL,
                                                timeout=Consts.GENERATION_TIMEOUT)
        self.baseline = None

    @staticmethod
    def for_ingress_controller(context, name, poller=None):
        return RolloutTracker(context, Consts.ROUTER_DEPLOYMENT_PREFIX + name, context.router_namespace, poller)

    @property
    def ref(self):
        return f"{self.kind}/{self.name}"

    def current_generation(self) -> int:
        value = self.context.client.get(self.ref, namespace=self.namespace, path="{.metadata.generation}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ClusterError(f"{self.ref} has no usable generation: {value!r}")

    def capture_baseline(self) -> int:
        self.baseline = self.current_generation()
        logger_conformance.info(f"{self.ref} baseline generation is {self.baseline}")
        return self.baseline

    def expect_generation(self, expected, interval=None, timeout=None) -> int:
        result = self.poller.poll(self.current_generation, int(expected), interval, timeout,
                                  MatchMode.EQUALS, description=f"{self.ref} generation")
        return result.value

    def expect_advanced_by(self, delta=1, interval=None, timeout=None) -> int:
        return self.expect_generation(self._baseline() + delta, interval, timeout)

    def expect_unchanged(self, duration=None, interval=None) -> int:
        duration = Consts.GENERATION_HOLD if duration is None else duration
        result = self.poller.hold(self.current_generation, self._baseline(), duration, interval,
                                  description=f"{self.ref} generation")
        return result.value

    def _baseline(self):
        if self.baseline is None:
            raise ValueError(f"No baseline for {self.ref}, call capture_baseline() before the mutation")
        return self.baseline

    def newest_pod(self, timeout=None) -> str:
        """
        One pod of the latest rollout: the ReplicaSet owned by the deployment with the highest
        revision, once all of its pods are Ready.
        """
        def observe():
            selector = self._newest_selector()
            return " ".join(ready_pod_names(self.context.client, self.namespace, selector))

        poller = ConditionPoller(self.poller.interval, Consts.POLL_TIMEOUT, self.poller.clock, self.poller.sleep)
        result = poller.poll(observe, r"\S+", timeout=timeout, mode=MatchMode.REGEX,
                             description=f"{self.ref} new pods ready")
        logger_conformance.info(f"Newest pod of {self.ref} is {result.value}")
        return result.value

    def _newest_selector(self):
        deployment = self.context.client.get_object(self.ref, namespace=self.namespace)
        match_labels = deployment.get("spec", {}).get("selector", {}).get("matchLabels") or {}
        selector = ",".join(f"{k}={v}" for k, v in sorted(match_labels.items()))

        owned = []
        for replicaset in self.context.client.list_objects("replicaset", self.namespace, selector or None):
            metadata = replicaset.get("metadata", {})
            owners = metadata.get("ownerReferences") or []
            if any(o.get("kind") == "Deployment" and o.get("name") == self.name for o in owners):
                owned.append(replicaset)
        if not owned:
            raise ClusterError(f"No ReplicaSet owned by {self.ref} yet")

        newest = max(owned, key=lambda rs: int((rs["metadata"].get("annotations") or {}).get(REVISION_ANNOTATION, 0)))
        template_hash = (newest["metadata"].get("labels") or {}).get("pod-template-hash")
        if not template_hash:
            raise ClusterError(f"ReplicaSet {newest['metadata']['name']} has no pod-template-hash")
        return ",".join(filter(None, [selector, f"pod-template-hash={template_hash}"]))
