"""Volume operations on the Docker Engine API."""

from dataclasses import dataclass, field


@dataclass
class Volume:
    """A Docker volume."""

    name: str = ""
    driver: str = ""
    options: dict = field(default_factory=dict)
    labels: dict = field(default_factory=dict)
    mountpoint: str = ""
    scope: str = ""

    @classmethod
    def from_api(cls, data):
        return cls(
            name=data.get("Name", ""),
            driver=data.get("Driver", ""),
            options=dict(data.get("Options") or {}),
            labels=dict(data.get("Labels") or {}),
            mountpoint=data.get("Mountpoint", ""),
            scope=data.get("Scope", ""),
        )


def exists(client, name):
    """Return True if the volume exists; the daemon's error is raised otherwise."""
    client.request("GET", f"/volumes/{name}")
    return True


def get(client, name):
    """Return the named volume, or a Volume holding only the name if absent."""
    listing = client.request("GET", "/volumes") or {}
    for item in listing.get("Volumes") or []:
        if item.get("Name") == name:
            return Volume.from_api(item)
    return Volume(name=name)


def create(client, volume):
    """Create a volume as configured and return it as the daemon reports it."""
    data = client.request(
        "POST",
        "/volumes/create",
        body={
            "Driver": volume.driver,
            "DriverOpts": dict(volume.options),
            "Labels": dict(volume.labels),
            "Name": volume.name,
        },
    )
    return Volume.from_api(data or {})


def remove(client, name):
    """Remove the volume, without force."""
    client.request("DELETE", f"/volumes/{name}")