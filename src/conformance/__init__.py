from .descriptor import (
    GatewayDescriptor,
    HTTPRouteDescriptor,
    IngressControllerDescriptor,
    IngressControllerHostPortDescriptor,
    IngressDescriptor,
    IPFailoverDescriptor,
    ResourceDescriptor,
    RouteDescriptor,
    TemplateRenderer,
    WebServerDeployDescriptor,
)
from .matching import AllOf, Matcher, MatchMode
from .poller import ConditionPoller, PollResult
from .rollout import RolloutTracker
from .sampler import (
    CommandOperation,
    HttpOperation,
    PodExecOperation,
    SampleResult,
    TrafficSampler,
)
from .snapshot import (
    ConfigInspector,
    ConfigSnapshot,
    assert_contains,
    assert_matches,
    assert_not_contains,
    assert_not_matches,
)
