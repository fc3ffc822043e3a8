"""A pygmy service: a container definition driven by its ``pygmy.*`` labels."""

import os
import re
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from pygmy.color import cprint, green, red
from pygmy.engine import containers, images
from pygmy.engine.client import DockerError
from pygmy.engine.containers import ContainerConfig, HostConfig, NetworkingConfig

try:
    import termios
    import tty
except ImportError:  # not available on every platform
    termios = None
    tty = None

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
# Labels are parsed as 10-bit signed integers.
_INT_MIN = -(1 << 9)
_INT_MAX = (1 << 9) - 1


class ServiceRuntime(ABC):
    """The operations a container runtime offers for a pygmy service."""

    @abstractmethod
    def setup(self, client):
        """Make sure the service's image is available."""

    @abstractmethod
    def start(self, client):
        """Start the service."""

    @abstractmethod
    def create(self, client):
        """Create the service's container without starting it."""

    @abstractmethod
    def status(self, client):
        """Return True if the service is running."""

    @abstractmethod
    def labels(self, client):
        """Return the labels of the running container."""

    @abstractmethod
    def container_id(self, client):
        """Return the id of the service's container."""

    @abstractmethod
    def clean(self, client):
        """Kill, stop and remove the container."""

    @abstractmethod
    def stop(self, client):
        """Stop the container."""

    @abstractmethod
    def stop_and_remove(self, client):
        """Stop and remove the container."""

    @abstractmethod
    def remove(self, client):
        """Remove the container."""

    @abstractmethod
    def set_field(self, client, name, value):
        """Set a ``pygmy.*`` label."""

    @abstractmethod
    def get_field_string(self, client, field):
        """Return a ``pygmy.*`` label as a string."""

    @abstractmethod
    def get_field_int(self, client, field):
        """Return a ``pygmy.*`` label as an int."""

    @abstractmethod
    def get_field_bool(self, client, field):
        """Return a ``pygmy.*`` label as a bool."""


@dataclass
class Params:
    """Settings passed from the top level down to the service definitions."""

    domain: str = ""


class FieldNotFoundError(LookupError):
    """A ``pygmy.*`` label is missing from a service."""


def _list_containers(client):
    try:
        return containers.list_containers(client)
    except (DockerError, OSError):
        return []


def _list_images(client):
    try:
        return images.list_images(client)
    except (DockerError, OSError):
        return []


def _parse_int(value):
    if not _INT_PATTERN.fullmatch(value):
        raise ValueError(f'parsing "{value}": invalid syntax')
    number = int(value)
    if not _INT_MIN <= number <= _INT_MAX:
        raise ValueError(f'parsing "{value}": value out of range')
    return number


@dataclass
class Service(ServiceRuntime):
    """A container definition whose behaviour is steered by ``pygmy.*`` labels."""

    config: ContainerConfig = field(default_factory=ContainerConfig)
    host_config: HostConfig = field(default_factory=HostConfig)
    image: str = ""
    network_config: NetworkingConfig = field(default_factory=NetworkingConfig)

    # --- labels ---------------------------------------------------------

    def _not_found(self, field_name):
        return FieldNotFoundError(
            f"could not find field 'pygmy.{field_name}' on service using image {self.config.image}?"
        )

    def _running_labels(self, client):
        try:
            return self.labels(client)
        except LookupError:
            return None

    def set_field(self, client, name, value):
        """Overwrite an existing ``pygmy.<name>`` label; absent labels are left alone.

        Raises ValueError when the visible value did not change.
        """
        key = f"pygmy.{name}"
        if key not in self.config.labels:
            return
        old = self._field_or_empty(client, name)
        self.config.labels[key] = str(value)
        new = self._field_or_empty(client, name)
        if old == new:
            raise ValueError("tag was not set")

    def _field_or_empty(self, client, name):
        try:
            return self.get_field_string(client, name)
        except FieldNotFoundError:
            return ""

    def get_field_string(self, client, field):
        """Return ``pygmy.<field>`` from the running container, else from the config."""
        key = f"pygmy.{field}"
        running = self._running_labels(client)
        if running is not None and key in running:
            return running[key]
        if key in self.config.labels:
            return self.config.labels[key]
        raise self._not_found(field)

    def get_field_int(self, client, field):
        """Return ``pygmy.<field>`` as an int; ValueError if it is not one."""
        key = f"pygmy.{field}"
        running = self._running_labels(client)
        if running is not None and key in running:
            return _parse_int(running[key])
        if key in self.config.labels:
            return _parse_int(self.config.labels[key])
        raise self._not_found(field)

    def get_field_bool(self, client, field):
        """Return ``pygmy.<field>`` as a bool.

        The configured value accepts true/false/1/0; raises FieldNotFoundError
        when no usable value is present.
        """
        key = f"pygmy.{field}"
        running = self._running_labels(client)
        if running is not None and self.config.labels.get(key, "") == running.get(key, ""):
            if running.get(key) == "true":
                return True
            if running.get(key) == "false":
                return False
        if key in self.config.labels:
            value = self.config.labels[key]
            if value in ("true", "1"):
                return True
            if value in ("false", "0"):
                return False
        raise self._not_found(field)

    def _bool_or_false(self, client, field):
        try:
            return self.get_field_bool(client, field)
        except (FieldNotFoundError, ValueError):
            return False

    def _require_name(self, client):
        try:
            return self.get_field_string(client, "name")
        except FieldNotFoundError:
            raise ValueError("container config is missing label for name") from None

    # --- lookups --------------------------------------------------------

    def _find_container(self, client):
        wanted = self.config.labels.get("pygmy.name", "")
        for summary in _list_containers(client):
            if "pygmy.name" in summary.labels and wanted in summary.labels["pygmy.name"]:
                return summary
        raise LookupError(f"container using image '{self.config.image}' was not found\n")

    def container_id(self, client):
        """Return the id of the container carrying this service's ``pygmy.name``."""
        return self._find_container(client).id

    def labels(self, client):
        """Return the labels of the container carrying this service's ``pygmy.name``."""
        return dict(self._find_container(client).labels)

    def status(self, client):
        """Return True if the service's container is up; auto-removed services always are."""
        try:
            name = self.get_field_string(client, "name")
        except FieldNotFoundError:
            name = ""
        if self.host_config.auto_remove:
            return True
        return any(
            name in container_name and summary.status.startswith("Up")
            for summary in _list_containers(client)
            for container_name in summary.names
        )

    # --- lifecycle ------------------------------------------------------

    def setup(self, client):
        """Pull the image if the daemon does not have it.

        Raises ValueError without an image, RuntimeError when the image is
        already present or up to date.
        """
        if not self.config.image:
            raise ValueError("image reference is nil value")
        found = any(
            self.config.image in "[" + " ".join(summary.repo_tags) + "]"
            for summary in _list_images(client)
        )
        if found:
            raise RuntimeError("image already in registry, skipping")
        message = images.pull(client, self.config.image)
        if "already up to date" in message:
            raise RuntimeError(message)

    def start(self, client):
        """Start the container unless it is already running."""
        try:
            name = self.get_field_string(client, "name")
        except FieldNotFoundError:
            return
        discrete = self._bool_or_false(client, "discrete")
        interactive = self._bool_or_false(client, "interactive")
        output = self._bool_or_false(client, "output")
        try:
            purpose = self.get_field_string(client, "purpose")
        except FieldNotFoundError:
            purpose = ""

        running = False
        if not self.host_config.auto_remove:
            running = self.status(client)

        if running and not self.host_config.auto_remove and not discrete:
            cprint(green(f"Already running {name}\n"))
            return

        if purpose == "addkeys":
            for action in (
                lambda: containers.kill(client, name),
                lambda: containers.remove(client, name),
                lambda: self.create(client),
            ):
                try:
                    action()
                except (DockerError, OSError, ValueError, RuntimeError):
                    pass

        if interactive:
            self.docker_run_interactive(client)
            return

        self.docker_run(client)
        log_output = self._logs_or_empty(client)
        if output and log_output:
            print(log_output.decode(errors="replace"))
        self.container_id(client)

    def _logs_or_empty(self, client):
        try:
            return self.docker_logs(client)
        except (DockerError, OSError):
            return b""

    def create(self, client):
        """Create the container without starting it."""
        try:
            name = self.get_field_string(client, "name")
        except FieldNotFoundError:
            name = ""
        if not name:
            raise ValueError("missing name property")
        output = self._bool_or_false(client, "output")

        self.docker_create(client)

        log_output = self._logs_or_empty(client)
        if output and log_output:
            print(log_output.decode(errors="replace"))

    def clean(self, client):
        """Kill, stop and remove the container if it is enabled for cleaning."""
        enabled = self._bool_or_false(client, "pygmy.enable")
        try:
            name = self.get_field_string(client, "name")
        except FieldNotFoundError:
            return

        for summary in _list_containers(client):
            if not summary.names or summary.names[0] != name or not enabled:
                continue
            shown = summary.names[0].lstrip("/")
            quiet = self.host_config.auto_remove
            try:
                containers.kill(client, summary.id)
            except (DockerError, OSError):
                pass
            else:
                if not quiet:
                    cprint(green(f"Successfully killed {shown}\n"))
            try:
                containers.stop(client, summary.id)
            except (DockerError, OSError):
                pass
            else:
                if not quiet:
                    cprint(green(f"Successfully stopped {shown}\n"))
            try:
                containers.remove(client, summary.id)
            except (DockerError, OSError):
                if not quiet:
                    cprint(green(f"Successfully removed {shown}\n"))

    def stop(self, client):
        """Stop the container, reporting unless the service is discrete."""
        try:
            name = self.get_field_string(client, "name")
        except FieldNotFoundError:
            return
        discrete = self._bool_or_false(client, "discrete")
        try:
            container_id = self.container_id(client)
        except LookupError:
            if not discrete:
                cprint(red(f"Not running {name}\n"))
            return
        try:
            containers.stop(client, container_id)
        except (DockerError, OSError):
            return
        if not discrete:
            cprint(green(f"Successfully stopped {name.strip('/')}\n"))

    def stop_and_remove(self, client):
        """Stop, then remove, the container; a failed stop is raised."""
        try:
            name = self.get_field_string(client, "name")
        except FieldNotFoundError:
            return
        discrete = self._bool_or_false(client, "discrete")
        try:
            container_id = self.container_id(client)
        except LookupError:
            if not discrete:
                cprint(red("Not running \n"))
            return
        containers.stop(client, container_id)
        try:
            containers.remove(client, container_id)
        except (DockerError, OSError):
            return
        if not discrete:
            cprint(green(f"Successfully removed {name.strip('/')}\n"))

    def remove(self, client):
        """Remove the container; a failed removal is raised."""
        discrete = self._bool_or_false(client, "discrete")
        try:
            container_id = self.container_id(client)
        except LookupError:
            container_id = ""
        containers.remove(client, container_id)
        if not discrete:
            cprint(green(f"Successfully removed {container_id.strip('/')}\n"))

    # --- direct container operations -------------------------------------

    def docker_logs(self, client):
        """Return the container's output so far."""
        try:
            name = self.get_field_string(client, "name")
        except FieldNotFoundError:
            name = ""
        return containers.logs(client, name)

    def docker_run(self, client):
        """Start the existing container."""
        containers.start(client, self._require_name(client))

    def docker_run_interactive(self, client):
        """Start the container attached to this terminal and wait for it to stop."""
        name = self._require_name(client)
        sock, reader = containers.attach(client, name, stdin=True, stdout=True, stderr=True, stream=True)

        def pump_output():
            target = sys.stdout.buffer
            try:
                while True:
                    chunk = reader.read1(4096)
                    if not chunk:
                        break
                    target.write(chunk)
                    target.flush()
            except (OSError, ValueError):
                pass

        def pump_input():
            try:
                fd = sys.stdin.fileno()
                while True:
                    data = os.read(fd, 1024)
                    if not data:
                        break
                    sock.sendall(data)
            except (OSError, ValueError):
                pass

        threading.Thread(target=pump_output, daemon=True).start()
        threading.Thread(target=pump_input, daemon=True).start()

        try:
            containers.start(client, name)
            saved = None
            fd = None
            if termios is not None and sys.stdin.isatty():
                fd = sys.stdin.fileno()
                saved = termios.tcgetattr(fd)
                tty.setraw(fd)
            try:
                containers.wait(client, name, "not-running")
            finally:
                if saved is not None:
                    termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        finally:
            sock.close()

    def docker_create(self, client):
        """Create the container unless its name is already taken."""
        wanted = self.config.labels.get("pygmy.name", "")
        for summary in _list_containers(client):
            if summary.names and summary.names[0].endswith(wanted):
                raise RuntimeError("container already created, or namespace is already taken")
        name = self._require_name(client)
        containers.create(client, name, self.config, self.host_config, self.network_config)