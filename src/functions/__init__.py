from .consts import Consts
from .errors import (
    AdmissionError,
    BlockAssertionError,
    ClientUnavailable,
    ClusterError,
    ConditionViolated,
    ConformanceError,
    DeadlineExceeded,
    JsonPathError,
    OperationError,
    OperationUnavailable,
    RenderError,
    ResourceNotFound,
)
from .filter import SingleLineNonEmptyFilter
from .functions import Functions
from .jsonpath import JsonPath
from .loggers import logger_cluster, logger_conformance, logger_traffic
from .suite_env import SuiteEnv
