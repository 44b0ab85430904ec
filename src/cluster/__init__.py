from .interface import ClusterContext, ClusterInterface, split_ref
from .kubectl import Kubectl
from .kubernetes import KubernetesApi
