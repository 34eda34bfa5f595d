"""Hastic analytic client - async gateway to a Hastic anomaly-detection server."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("hastic-analytic-client")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

from hastic_client.availability import (
    AvailabilityRegistry,
    DatasourceAvailability,
    DatasourceStatus,
    get_default_registry,
)
from hastic_client.exceptions import (
    ConfigurationError,
    ConnectivityError,
    DataContractError,
    HasticClientError,
    ServerError,
    TransportError,
)
from hastic_client.notifications import NotificationBus
from hastic_client.polling import PollingStream, poll
from hastic_client.service import AnalyticService

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "AnalyticService",
    "AvailabilityRegistry",
    "ConfigurationError",
    "ConnectivityError",
    "DataContractError",
    "DatasourceAvailability",
    "DatasourceStatus",
    "HasticClientError",
    "NotificationBus",
    "PollingStream",
    "ServerError",
    "TransportError",
    "get_default_registry",
    "poll",
]
