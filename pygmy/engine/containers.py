"""Container operations on the Docker Engine API."""

import platform
import struct
from dataclasses import dataclass, field
from typing import Optional

from pygmy.engine.client import DockerError

_ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
}


@dataclass
class PortBinding:
    host_ip: str = ""
    host_port: str = ""

    def to_api(self):
        return {"HostIp": self.host_ip, "HostPort": self.host_port}


@dataclass
class RestartPolicy:
    name: str = ""
    maximum_retry_count: int = 0

    def to_api(self):
        return {"Name": self.name, "MaximumRetryCount": self.maximum_retry_count}


@dataclass
class ContainerConfig:
    """What goes into a container: image, command, environment and labels."""

    image: str = ""
    cmd: list = field(default_factory=list)
    labels: dict = field(default_factory=dict)
    env: list = field(default_factory=list)
    user: str = ""
    exposed_ports: set = field(default_factory=set)
    tty: bool = False
    open_stdin: bool = False

    def to_api(self):
        data = {
            "Image": self.image,
            "Labels": dict(self.labels),
            "Tty": self.tty,
            "OpenStdin": self.open_stdin,
            "AttachStdin": self.open_stdin,
            "AttachStdout": True,
            "AttachStderr": True,
        }
        if self.cmd:
            data["Cmd"] = list(self.cmd)
        if self.env:
            data["Env"] = list(self.env)
        if self.user:
            data["User"] = self.user
        if self.exposed_ports:
            data["ExposedPorts"] = {port: {} for port in sorted(self.exposed_ports)}
        return data


@dataclass
class HostConfig:
    """How the host runs a container."""

    auto_remove: bool = False
    binds: list = field(default_factory=list)
    cap_add: list = field(default_factory=list)
    ipc_mode: str = ""
    port_bindings: Optional[dict] = None
    restart_policy: RestartPolicy = field(default_factory=RestartPolicy)
    volumes_from: list = field(default_factory=list)
    privileged: bool = False

    def to_api(self):
        data = {
            "AutoRemove": self.auto_remove,
            "Privileged": self.privileged,
            "RestartPolicy": self.restart_policy.to_api(),
        }
        if self.binds:
            data["Binds"] = list(self.binds)
        if self.cap_add:
            data["CapAdd"] = list(self.cap_add)
        if self.ipc_mode:
            data["IpcMode"] = self.ipc_mode
        if self.volumes_from:
            data["VolumesFrom"] = list(self.volumes_from)
        if self.port_bindings:
            data["PortBindings"] = {
                port: [binding.to_api() for binding in bindings]
                for port, bindings in self.port_bindings.items()
            }
        return data


@dataclass
class NetworkingConfig:
    endpoints_config: dict = field(default_factory=dict)

    def to_api(self):
        return {"EndpointsConfig": dict(self.endpoints_config)}


@dataclass
class ContainerSummary:
    """One entry of the container list."""

    id: str = ""
    names: list = field(default_factory=list)
    image: str = ""
    status: str = ""
    state: str = ""
    labels: dict = field(default_factory=dict)
    networks: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data):
        settings = data.get("NetworkSettings") or {}
        return cls(
            id=data.get("Id", ""),
            names=list(data.get("Names") or []),
            image=data.get("Image", ""),
            status=data.get("Status", ""),
            state=data.get("State", ""),
            labels=dict(data.get("Labels") or {}),
            networks=dict(settings.get("Networks") or {}),
        )


def _demux(data):
    """Strip the 8-byte frame headers of a multiplexed stdout/stderr stream."""
    if len(data) < 8 or data[0] not in (0, 1, 2) or data[1:4] != b"\x00\x00\x00":
        return data
    out = bytearray()
    offset = 0
    while offset + 8 <= len(data):
        (size,) = struct.unpack(">I", data[offset + 4 : offset + 8])
        out += data[offset + 8 : offset + 8 + size]
        offset += 8 + size
    return bytes(out)


def stop(client, name):
    """Stop the container, waiting up to 10 seconds."""
    client.request("POST", f"/containers/{name}/stop", params={"t": 10})


def kill(client, name):
    """Kill the container."""
    client.request("POST", f"/containers/{name}/kill")


def remove(client, container_id):
    """Remove the container; the image is kept."""
    client.request("DELETE", f"/containers/{container_id}")


def inspect(client, container):
    """Return the full inspection document of the container."""
    return client.request("GET", f"/containers/{container}/json")


def exec_command(client, container, command):
    """Run a space-separated command in the container and return its output."""
    created = client.request(
        "POST",
        f"/containers/{container}/exec",
        body={"AttachStdout": True, "AttachStderr": True, "Cmd": command.split(" ")},
    )
    data = b"".join(
        client.stream("POST", f"/exec/{created['Id']}/start", body={"Detach": False, "Tty": False})
    )
    return _demux(data)


def list_containers(client):
    """Return every container, running or not."""
    return [ContainerSummary.from_api(item) for item in client.request("GET", "/containers/json", params={"all": 1}) or []]


def create(client, name, config, host_config, network_config):
    """Create, but do not start, a linux container for this machine's architecture."""
    machine = platform.machine().lower()
    arch = _ARCHITECTURES.get(machine, machine)
    body = config.to_api()
    body["HostConfig"] = host_config.to_api()
    body["NetworkingConfig"] = network_config.to_api()
    return client.request(
        "POST",
        "/containers/create",
        params={"name": name, "platform": f"linux/{arch}"},
        body=body,
    )


def attach(client, container_id, stdin=False, stdout=True, stderr=True, stream=True, logs=False):
    """Attach to the container; return the raw ``(socket, reader)`` pair."""
    params = {
        "stdin": int(stdin),
        "stdout": int(stdout),
        "stderr": int(stderr),
        "stream": int(stream),
        "logs": int(logs),
    }
    return client.hijack("POST", f"/containers/{container_id}/attach", params)


def start(client, container_id):
    """Start an existing container."""
    client.request("POST", f"/containers/{container_id}/start")


def wait(client, container_id, condition="not-running"):
    """Block until the container meets the condition."""
    result = client.request("POST", f"/containers/{container_id}/wait", params={"condition": condition})
    error = (result or {}).get("Error") or {}
    if error.get("Message"):
        raise DockerError(0, error["Message"])


def logs(client, container_id):
    """Return the container's stdout and stderr output collected so far."""
    data = b"".join(
        client.stream("GET", f"/containers/{container_id}/logs", params={"stdout": 1, "stderr": 1})
    )
    return _demux(data)