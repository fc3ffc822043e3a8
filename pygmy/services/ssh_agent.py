"""The SSH agent service and helpers for the keys it holds."""

import os

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from pygmy.engine import containers
from pygmy.engine.containers import ContainerConfig, HostConfig, NetworkingConfig, RestartPolicy
from pygmy.service import FieldNotFoundError, Service


def new():
    """Return the standard SSH agent service."""
    return Service(
        config=ContainerConfig(
            image="pygmystack/ssh-agent",
            labels={
                "pygmy.defaults": "true",
                "pygmy.enable": "true",
                "pygmy.name": "amazeeio-ssh-agent",
                "pygmy.network": "amazeeio-network",
                "pygmy.output": "false",
                "pygmy.purpose": "sshagent",
                "pygmy.weight": "10",
            },
        ),
        host_config=HostConfig(
            auto_remove=False,
            ipc_mode="private",
            restart_policy=RestartPolicy(name="unless-stopped", maximum_retry_count=0),
        ),
        network_config=NetworkingConfig(),
    )


def _field(client, service, name):
    try:
        return service.get_field_string(client, name)
    except FieldNotFoundError:
        return ""


def list_keys(client, service):
    """Return the log output of the service, starting it first if it shows keys."""
    name = _field(client, service, "name")
    purpose = _field(client, service, "purpose")
    if purpose == "showkeys":
        service.start(client)
    return containers.logs(client, name)


def validate(file_path):
    """Return True if the file holds an unencrypted SSH private key.

    A trailing ``.pub`` is dropped from the path first. Raises ValueError
    when the file cannot be read or holds no usable private key.
    """
    path = file_path.rstrip(".pub")
    try:
        with open(path, "rb") as handle:
            content = handle.read()
    except OSError as exc:
        raise ValueError(f"ssh: no key found in {path}: {exc}") from exc

    try:
        if b"BEGIN OPENSSH PRIVATE KEY" in content:
            serialization.load_ssh_private_key(content, password=None)
        else:
            serialization.load_pem_private_key(content, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"ssh: cannot parse private key {path}: {exc}") from exc
    return True


def search(client, service, key):
    """Return True if the public half of ``key`` is listed by the agent.

    Raises LookupError when the agent has no identities and ValueError when
    the agent reports a key that failed to load.
    """
    try:
        os.stat(key)
    except FileNotFoundError:
        return False

    stripped = key.strip(".pub")
    with open(stripped + ".pub", encoding="utf-8", errors="replace") as handle:
        public_key = handle.read()

    try:
        items = list_keys(client, service)
    except Exception:  # the agent may be unreachable; treat as no output
        items = b""
    if not items:
        return False

    result = False
    for item in items.decode(errors="replace").split("\n"):
        if "The agent has no identities" in item:
            raise LookupError(item)
        if "Error loading key" in item:
            raise ValueError(item)
        if public_key in item:
            result = True
    return result