"""Find the Docker host of the currently selected Docker context."""

import json
import os
from dataclasses import dataclass, field


@dataclass
class DockerConfig:
    """The part of ``~/.docker/config.json`` that names the current context."""

    current_context: str = ""

    @classmethod
    def from_json(cls, data):
        return cls(current_context=data.get("currentContext", "") or "")


@dataclass
class DockerContextManifest:
    """A context's ``meta.json``: its name and the host of each endpoint."""

    name: str = ""
    endpoints: dict = field(default_factory=dict)

    @classmethod
    def from_json(cls, data):
        lowered = {k.lower(): v for k, v in data.items()}
        endpoints = {}
        for key, value in (lowered.get("endpoints") or {}).items():
            value = {k.lower(): v for k, v in (value or {}).items()}
            endpoints[key] = value.get("host", "") or ""
        return cls(name=lowered.get("name", "") or "", endpoints=endpoints)


def _home_path(*parts):
    return os.path.join(os.path.expanduser("~"), *parts)


def current_context():
    """Return the current context name, or "" when no Docker config exists."""
    path = _home_path(".docker", "config.json")
    try:
        with open(path, "rb") as handle:
            raw = handle.read()
    except FileNotFoundError:
        return ""
    return DockerConfig.from_json(json.loads(raw)).current_context


def endpoint_from_context(context):
    """Return the docker endpoint host of the named context.

    Raises FileNotFoundError when the context metadata directory is missing.
    """
    manifest_dir = _home_path(".docker", "contexts", "meta")
    if not os.path.isdir(manifest_dir):
        raise FileNotFoundError(f"lstat {manifest_dir}: no such file or directory")

    found = DockerContextManifest()
    for root, _dirs, files in os.walk(manifest_dir):
        if "meta.json" not in files:
            continue
        with open(os.path.join(root, "meta.json"), "rb") as handle:
            manifest = DockerContextManifest.from_json(json.loads(handle.read()))
        if manifest.name == context:
            found = manifest
    return found.endpoints.get("docker", "")


def current_docker_host():
    """Return the host of the current Docker context, or "" if there is none."""
    context = current_context()
    if not context:
        return ""
    return endpoint_from_context(context)