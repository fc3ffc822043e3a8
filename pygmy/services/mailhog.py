"""The mailhog service, which catches outgoing mail."""

from pygmy.engine.containers import ContainerConfig, HostConfig, NetworkingConfig, PortBinding, RestartPolicy
from pygmy.service import Service

_IMAGE = "pygmystack/mailhog"
_CONTAINER = "amazeeio-mailhog"
_NETWORK = "amazeeio-network"
_WEIGHT = 15
_WEB_BIND = "0.0.0.0:80"
_EXPOSED = (80, 1025, 8025)
_SMTP_PORT = "1025"


def _labels(host):
    settings = {
        "defaults": "true",
        "enable": "true",
        "name": _CONTAINER,
        "network": _NETWORK,
        "url": f"http://{host}",
        "weight": str(_WEIGHT),
    }
    return {f"pygmy.{key}": value for key, value in settings.items()}


def _environment(host):
    return [
        *(f"MH_{part}_BIND_ADDR={_WEB_BIND}" for part in ("UI", "API")),
        "AMAZEEIO=AMAZEEIO",
        f"AMAZEEIO_URL={host}",
    ]


def new(params):
    """Return the standard mailhog service for ``params.domain``."""
    host = f"mailhog.{params.domain}"
    return Service(
        config=ContainerConfig(
            user="0",
            exposed_ports={f"{port}/tcp" for port in _EXPOSED},
            env=_environment(host),
            image=_IMAGE,
            labels=_labels(host),
        ),
        host_config=HostConfig(
            auto_remove=False,
            restart_policy=RestartPolicy(name="unless-stopped", maximum_retry_count=0),
        ),
        network_config=NetworkingConfig(),
    )


def new_default_ports():
    """Return a service holding only the standard mailhog port bindings."""
    bindings = {f"{_SMTP_PORT}/tcp": [PortBinding(host_ip="", host_port=_SMTP_PORT)]}
    return Service(host_config=HostConfig(port_bindings=bindings))