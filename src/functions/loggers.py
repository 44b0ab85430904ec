import logging

from .functions import Functions

logger_conformance = logging.getLogger(Functions.CONFORMANCE_LOG)
logger_cluster = logging.getLogger(Functions.CLUSTER_LOG)
logger_traffic = logging.getLogger(Functions.TRAFFIC_LOG)

Functions.setup_log(logger_conformance)
Functions.setup_log(logger_cluster)
Functions.setup_log(logger_traffic)
