"""The dnsmasq service, which answers DNS queries for the local domain."""

from pygmy.engine.containers import ContainerConfig, HostConfig, NetworkingConfig, PortBinding, RestartPolicy
from pygmy.service import Service


def new(params):
    """Return the standard dnsmasq service for ``params.domain``."""
    return Service(
        config=ContainerConfig(
            image="pygmystack/dnsmasq",
            cmd=[
                "--log-facility=-",
                "-A",
                f"/{params.domain}/127.0.0.1",
            ],
            labels={
                "pygmy.defaults": "true",
                "pygmy.enable": "true",
                "pygmy.name": "amazeeio-dnsmasq",
                "pygmy.weight": "13",
            },
        ),
        host_config=HostConfig(
            auto_remove=False,
            cap_add=["NET_ADMIN"],
            ipc_mode="private",
            port_bindings={
                "53/tcp": [PortBinding(host_ip="", host_port="6053")],
                "53/udp": [PortBinding(host_ip="", host_port="6053")],
            },
            restart_policy=RestartPolicy(name="unless-stopped", maximum_retry_count=0),
        ),
        network_config=NetworkingConfig(),
    )