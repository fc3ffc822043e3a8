"""Image operations on the Docker Engine API."""

import codecs
import json
import re
from dataclasses import dataclass, field

from pygmy import endpoint
from pygmy.engine.client import DockerError

_PART = r"[a-zA-Z0-9_.-]+"

# Each pattern maps to a template for the fully qualified reference.
_REFERENCE_FORMS = (
    (re.compile(rf"{_PART}/{_PART}/{_PART}:{_PART}"), "{}"),
    (re.compile(rf"{_PART}/{_PART}/{_PART}"), "{}:latest"),
    (re.compile(rf"{_PART}/{_PART}:{_PART}"), "docker.io/{}"),
    (re.compile(rf"{_PART}/{_PART}"), "docker.io/{}:latest"),
    (re.compile(rf"{_PART}:{_PART}"), "docker.io/{}"),
    (re.compile(_PART), "docker.io/{}:latest"),
)

_REGISTRY_URL = "https://registry-1.docker.io/v2/"


@dataclass
class ImageSummary:
    """One entry of the image list."""

    id: str = ""
    repo_tags: list = field(default_factory=list)
    repo_digests: list = field(default_factory=list)
    labels: dict = field(default_factory=dict)
    size: int = 0


def _summary_from_api(data):
    return ImageSummary(
        id=data.get("Id", ""),
        repo_tags=list(data.get("RepoTags") or []),
        repo_digests=list(data.get("RepoDigests") or []),
        labels=dict(data.get("Labels") or {}),
        size=data.get("Size", 0) or 0,
    )


def normalize_reference(image):
    """Return the fully qualified form of an image reference.

    References without a registry get ``docker.io/``, references without a
    tag get ``:latest``. Raises ValueError for references that fit no form.
    """
    for pattern, template in _REFERENCE_FORMS:
        if pattern.fullmatch(image):
            return template.format(image)
    raise ValueError(f"error: regexp validation for {image} failed")


def remove(client, image_id):
    """Remove an image from the daemon and return the deletion records."""
    return list(client.request("DELETE", f"/images/{image_id}") or [])


def list_images(client):
    """Return every image known to the daemon."""
    items = client.request("GET", "/images/json", params={"all": 1}) or []
    return [_summary_from_api(item) for item in items]


def _json_events(chunks):
    """Yield the JSON objects of a concatenated JSON stream."""
    decoder = json.JSONDecoder()
    text = codecs.getincrementaldecoder("utf-8")()
    buffer = ""
    for chunk in chunks:
        buffer += text.decode(chunk)
        while True:
            buffer = buffer.lstrip()
            if not buffer:
                break
            try:
                obj, end = decoder.raw_decode(buffer)
            except ValueError:
                break
            yield obj
            buffer = buffer[end:]
    buffer += text.decode(b"", final=True)
    if buffer.strip():
        raise ValueError(f"truncated pull progress stream: {buffer.strip()!r}")


def pull(client, image):
    """Pull an image into the daemon and return a short report.

    Raises ValueError for an invalid reference and ConnectionError when the
    Docker Hub registry cannot be reached.
    """
    image = normalize_reference(image)

    if image.startswith("docker.io") and not endpoint.validate(_REGISTRY_URL):
        raise ConnectionError(
            "cannot reach the Docker Hub Registry, please try again in a few minutes"
        )

    last = None
    try:
        for event in _json_events(client.stream("POST", "/images/create", params={"fromImage": image})):
            last = event
    except DockerError as exc:
        if "pull access denied" in str(exc):
            return f"Error trying to update image {image}: pull access denied"
        return image

    status = (last or {}).get("status", "") or ""
    if "Downloaded newer image" in status:
        return f"Successfully pulled {image}"
    if "Image is up to date" in status:
        return f"Image {image} is up to date"
    return status