# pygmy

A library for running a small set of local development containers through the
Docker Engine API:

- **dnsmasq** answers DNS queries for a development domain with `127.0.0.1`;
- **haproxy** routes HTTP traffic to your project containers;
- **mailhog** catches outgoing mail;
- **ssh-agent** holds your SSH keys for use inside containers.

It also manages a host resolver entry so the development domain is routed to
the local dnsmasq container.

## Layout

| Module | Purpose |
| --- | --- |
| `pygmy.engine.client` | `DockerClient` talks to the Docker daemon over a unix socket or TCP; `new_client()` honours `DOCKER_HOST`, then the current Docker context, then `unix:///var/run/docker.sock`. Daemon errors are raised as `DockerError`. |
| `pygmy.engine.dockercontext` | Reads `~/.docker/config.json` and the context metadata to find the active daemon host (`current_docker_host()`). |
| `pygmy.engine.containers` | `create`, `start`, `stop`, `kill`, `remove`, `inspect`, `exec_command`, `attach`, `wait`, `logs` and `list_containers`, plus the `ContainerConfig`, `HostConfig`, `NetworkingConfig`, `PortBinding` and `RestartPolicy` definitions. |
| `pygmy.engine.images` | `list_images`, `pull` and `remove`; `normalize_reference()` expands short image names. |
| `pygmy.engine.networks` | `create`, `get`, `status`, `connect`, `connected` and `remove` for Docker networks. |
| `pygmy.engine.volumes` | `create`, `get`, `exists` and `remove` for Docker volumes. |
| `pygmy.service` | `Service`, a container definition whose behaviour is driven by `pygmy.*` labels, and `Params`, which carries the development domain. |
| `pygmy.services` | Default definitions: `dnsmasq`, `haproxy`, `mailhog`, `ssh_agent`, `ssh_key`, `network_defaults`. |
| `pygmy.resolv` | `Resolv`, which installs, checks and removes the host resolver configuration. |
| `pygmy.endpoint` | `validate(url)`: returns `True` when the URL can be fetched and does not answer with a 501–599 status. Certificates are not verified. |
| `pygmy.color` | `green`, `red` and `cprint` for coloured console output. |

## Example

```python
from pygmy.engine.client import new_client
from pygmy.engine import images
from pygmy.service import Params
from pygmy.services import dnsmasq, haproxy, mailhog

client = new_client()
params = Params(domain="docker.example.com")

for service in (dnsmasq.new(params), haproxy.new(params), mailhog.new(params)):
    if not service.status(client):
        service.create(client)
        service.start(client)

print(images.normalize_reference("pygmystack/haproxy"))
# docker.io/pygmystack/haproxy:latest
```

`haproxy.new_default_ports()` and `mailhog.new_default_ports()` return services
that hold only the standard port bindings (80 and 443, and 1025), for merging
into a definition of your own.

Service behaviour is controlled by labels on the container configuration,
read with `Service.get_field_string`, `get_field_int` and `get_field_bool`
(a missing label raises `FieldNotFoundError`): `pygmy.name`, `pygmy.enable`,
`pygmy.weight`, `pygmy.network`, `pygmy.url`, `pygmy.purpose`,
`pygmy.discrete`, `pygmy.interactive` and `pygmy.output`. A label on the
running container takes precedence over the configured one.

## SSH keys

`pygmy.services.ssh_agent.validate(path)` returns `True` when the file holds an
unencrypted private key and raises `ValueError` otherwise.
`search(client, service, path)` reports whether the matching `.pub` key is
listed by the agent container. `pygmy.services.ssh_key.new_adder()` describes
the interactive container that adds a key to the agent.

## Resolver

```python
from pygmy.resolv import Resolv
from pygmy.service import Params

resolver = Resolv(
    name="docker.example.com",
    folder="/etc/resolver",
    file="docker.example.com",
    data="nameserver 127.0.0.1\nport 6053\n",
    enabled=True,
)
resolver.configure(Params(domain="docker.example.com"))
print(resolver.status(Params(domain="docker.example.com")))
resolver.clean()
```

On Linux and macOS the file is written with `sudo`; on macOS a loopback alias
`172.16.172.16` is added and `mDNSResponder` restarted. On Windows the domain is
set in the TCP/IP registry parameters through PowerShell.

## What it does not do

This is a library only. It has no command-line program: there is no command
to bring the whole set of services up or down, to report their status, or to
add keys from a shell. It does not read or write a configuration file; the
services, network and resolver are built in Python with the functions above.

## Requirements

Python 3.10 or later, the `cryptography` package, and access to a Docker
daemon.