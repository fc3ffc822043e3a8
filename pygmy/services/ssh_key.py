"""The service that adds SSH keys to the running SSH agent."""

from pygmy.engine.containers import ContainerConfig, HostConfig, NetworkingConfig
from pygmy.service import Service

_IMAGE = "pygmystack/ssh-agent"
_AGENT = "amazeeio-ssh-agent"
_CONTAINER = f"{_AGENT}-add-key"
_NETWORK = "amazeeio-network"
_WEIGHT = 31


def _labels():
    flags_on = ("defaults", "enable", "discrete", "interactive")
    settings = {flag: "true" for flag in flags_on}
    settings.update(
        name=_CONTAINER,
        network=_NETWORK,
        output="false",
        purpose="addkeys",
        weight=str(_WEIGHT),
    )
    return {f"pygmy.{key}": value for key, value in settings.items()}


def new_adder():
    """Return the standard SSH key adder service."""
    return Service(
        config=ContainerConfig(
            image=_IMAGE,
            labels=_labels(),
            tty=True,
            open_stdin=True,
        ),
        host_config=HostConfig(
            auto_remove=False,
            ipc_mode="private",
            volumes_from=[_AGENT],
        ),
        network_config=NetworkingConfig(),
    )