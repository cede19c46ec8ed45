"""Network status and network configuration models stored on game server pods."""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NetworkState(str, Enum):
    """Reachability of a game server from outside the cluster."""
    NOT_READY = "NotReady"
    READY = "Ready"


class _CamelModel(BaseModel):
    """Serialises with the camelCase field names used in pod annotations."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class NetworkConfParam(_CamelModel):
    """One provider specific (name, value) network configuration entry."""
    name: str
    value: str = ""


class NetworkPort(_CamelModel):
    """A named port on a network address."""
    name: str
    protocol: Optional[str] = None
    port: Optional[Union[int, str]] = None


class NetworkAddress(_CamelModel):
    """An IP together with the ports reachable on it."""
    ip: str = ""
    ports: List[NetworkPort] = Field(default_factory=list)
    end_point: Optional[str] = None


class NetworkStatus(_CamelModel):
    """Network status recorded on a game server pod."""
    network_type: Optional[str] = None
    internal_addresses: List[NetworkAddress] = Field(default_factory=list)
    external_addresses: List[NetworkAddress] = Field(default_factory=list)
    desired_network_state: Optional[NetworkState] = None
    current_network_state: Optional[NetworkState] = None
    create_time: Optional[datetime] = None
    last_transition_time: Optional[datetime] = None

    @property
    def is_ready(self) -> bool:
        return self.current_network_state == NetworkState.READY
