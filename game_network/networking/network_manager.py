"""
Network manager for the network annotations of a game server pod.

The desired network configuration and the observed network status of a game
server both travel on the pod as annotations. This manager is the only place
that parses or writes them.
"""

import json
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import InternalError
from ..models.network import NetworkConfParam, NetworkStatus
from ..models.resources import GameServerPod
from ..utils.logging import get_logger

logger = get_logger(__name__)

NETWORK_TYPE_KEY = "game.kruise.io/network-type"
NETWORK_CONF_KEY = "game.kruise.io/network-conf"
NETWORK_STATUS_KEY = "game.kruise.io/network-status"
NETWORK_DISABLED_KEY = "game.kruise.io/network-disabled"
OWNER_GSS_KEY = "game.kruise.io/owner-gss"

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


def parse_bool(value: str) -> bool:
    """Parse a boolean the way the platform writes them.

    Raises:
        ValueError: If the value is not a recognised boolean literal
    """
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


class NetworkManager:
    """Reads and writes the network annotations of one pod."""

    def __init__(self, pod: GameServerPod):
        self.pod = pod

    def get_network_type(self) -> Optional[str]:
        """Name or alias of the plugin responsible for the pod."""
        return self.pod.annotations.get(NETWORK_TYPE_KEY) or None

    def get_network_config(self) -> List[NetworkConfParam]:
        """Provider specific configuration entries, empty when unset or invalid."""
        raw = self.pod.annotations.get(NETWORK_CONF_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            return [NetworkConfParam.model_validate(item) for item in data]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.warning(f"Ignoring invalid network config on pod {self.pod.key}: {e}")
            return []

    def get_network_disabled(self) -> bool:
        """Whether the pod asked to be taken off the load balancer."""
        raw = self.pod.annotations.get(NETWORK_DISABLED_KEY)
        if not raw:
            return False
        try:
            return parse_bool(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid {NETWORK_DISABLED_KEY} value {raw!r} on pod {self.pod.key}")
            return False

    def get_network_status(self) -> Optional[NetworkStatus]:
        """The recorded network status, or None before the first one is written.

        Raises:
            InternalError: If the recorded status cannot be parsed
        """
        raw = self.pod.annotations.get(NETWORK_STATUS_KEY)
        if not raw:
            return None
        try:
            return NetworkStatus.model_validate_json(raw)
        except PydanticValidationError as e:
            raise InternalError(
                f"Invalid network status on pod {self.pod.key}",
                details={"annotation": NETWORK_STATUS_KEY},
                cause=e
            )

    def update_network_status(self, status: NetworkStatus, pod: Optional[GameServerPod] = None) -> GameServerPod:
        """Record a network status on the pod and return the pod.

        The network type, creation time and transition time are stamped
        here so that plugins only decide the state and addresses.
        """
        pod = pod or self.pod
        now = datetime.now(timezone.utc).replace(microsecond=0)

        previous = None
        raw = pod.annotations.get(NETWORK_STATUS_KEY)
        if raw:
            try:
                previous = NetworkStatus.model_validate_json(raw)
            except PydanticValidationError:
                previous = None

        status = status.model_copy(deep=True)
        if status.network_type is None:
            status.network_type = self.get_network_type()
        if status.create_time is None:
            status.create_time = previous.create_time if previous and previous.create_time else now
        if previous is None or previous.current_network_state != status.current_network_state:
            status.last_transition_time = now
        elif status.last_transition_time is None:
            status.last_transition_time = previous.last_transition_time

        pod.annotations[NETWORK_STATUS_KEY] = status.to_json()
        return pod
