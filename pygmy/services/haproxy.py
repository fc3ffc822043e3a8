"""The haproxy service, which routes web traffic to local containers."""

from pygmy.engine.containers import ContainerConfig, HostConfig, NetworkingConfig, PortBinding, RestartPolicy
from pygmy.service import Service


def new(params):
    """Return the standard haproxy service for ``params.domain``."""
    return Service(
        config=ContainerConfig(
            image="pygmystack/haproxy",
            labels={
                "pygmy.defaults": "true",
                "pygmy.enable": "true",
                "pygmy.name": "amazeeio-haproxy",
                "pygmy.network": "amazeeio-network",
                "pygmy.url": f"http://{params.domain}/stats",
                "pygmy.weight": "14",
            },
            env=[f"AMAZEEIO_URL={params.domain}"],
        ),
        host_config=HostConfig(
            binds=["/var/run/docker.sock:/tmp/docker.sock"],
            auto_remove=False,
            port_bindings=None,
            restart_policy=RestartPolicy(name="unless-stopped", maximum_retry_count=0),
        ),
        network_config=NetworkingConfig(),
    )


def new_default_ports():
    """Return a service holding only the standard haproxy port bindings."""
    return Service(
        host_config=HostConfig(
            port_bindings={
                "80/tcp": [PortBinding(host_ip="", host_port="80")],
                "443/tcp": [PortBinding(host_ip="", host_port="443")],
            },
        ),
    )