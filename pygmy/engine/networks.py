"""Network operations on the Docker Engine API."""

from dataclasses import dataclass, field
from typing import Optional

from pygmy.engine.client import DockerError
from pygmy.engine.containers import list_containers


@dataclass
class IPAMConfig:
    subnet: str = ""
    gateway: str = ""
    ip_range: str = ""


@dataclass
class IPAM:
    driver: str = ""
    options: Optional[dict] = None
    config: list = field(default_factory=list)


@dataclass
class Network:
    """A Docker network as created or listed."""

    name: str = ""
    id: str = ""
    driver: str = ""
    enable_ipv6: bool = False
    ipam: IPAM = field(default_factory=IPAM)
    internal: bool = False
    attachable: bool = False
    options: dict = field(default_factory=dict)
    labels: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data):
        ipam = data.get("IPAM") or {}
        return cls(
            name=data.get("Name", ""),
            id=data.get("Id", ""),
            driver=data.get("Driver", ""),
            enable_ipv6=bool(data.get("EnableIPv6", False)),
            ipam=IPAM(
                driver=ipam.get("Driver", ""),
                options=ipam.get("Options"),
                config=[
                    IPAMConfig(
                        subnet=item.get("Subnet", ""),
                        gateway=item.get("Gateway", ""),
                        ip_range=item.get("IPRange", ""),
                    )
                    for item in ipam.get("Config") or []
                ],
            ),
            internal=bool(data.get("Internal", False)),
            attachable=bool(data.get("Attachable", False)),
            options=dict(data.get("Options") or {}),
            labels=dict(data.get("Labels") or {}),
        )


def _ipam_config_to_api(item):
    data = {"Subnet": item.subnet, "Gateway": item.gateway}
    if item.ip_range:
        data["IPRange"] = item.ip_range
    return data


def _create_body(network):
    return {
        "Name": network.name,
        "Driver": network.driver,
        "EnableIPv6": network.enable_ipv6,
        "IPAM": {
            "Driver": network.ipam.driver,
            "Options": dict(network.ipam.options or {}),
            "Config": [_ipam_config_to_api(item) for item in network.ipam.config],
        },
        "Internal": network.internal,
        "Attachable": network.attachable,
        "Options": dict(network.options),
        "Labels": dict(network.labels),
    }


def _list(client):
    return [Network.from_api(item) for item in client.request("GET", "/networks") or []]


def create(client, network):
    """Create the network; raise DockerError if one with its name exists."""
    if status(client, network.name):
        raise DockerError(409, f"docker network {network.name} already exists")
    client.request("POST", "/networks/create", body=_create_body(network))


def remove(client, name):
    """Remove the network, without force."""
    client.request("DELETE", f"/networks/{name}")


def status(client, name):
    """Return True if a network with this name exists."""
    return any(network.name == name for network in _list(client))


def get(client, name):
    """Return the network labelled ``pygmy.name=name``, or an empty Network."""
    for network in _list(client):
        if network.labels.get("pygmy.name") == name:
            return network
    return Network()


def connect(client, network, container_name):
    """Connect a container to a network."""
    client.request("POST", f"/networks/{network}/connect", body={"Container": container_name})


def connected(client, network, container_name):
    """Return True if the container labelled ``container_name`` is on the network.

    Raises LookupError when it is not.
    """
    for container in list_containers(client):
        if container.labels.get("pygmy.name") == container_name and network in container.networks:
            return True
    raise LookupError("network was found without the container connected")