import json
from unittest import mock

import pytest

from pygmy.engine import images
from pygmy.engine.client import DockerError


class FakeClient:
    def __init__(self, responses=None, chunks=None, stream_error=None):
        self.responses = responses or {}
        self.chunks = chunks or []
        self.stream_error = stream_error
        self.calls = []

    def request(self, method, path, params=None, body=None):
        self.calls.append((method, path, params, body))
        result = self.responses.get((method, path))
        if isinstance(result, Exception):
            raise result
        return result

    def stream(self, method, path, params=None, body=None):
        self.calls.append((method, path, params, body))
        if self.stream_error is not None:
            raise self.stream_error
        yield from self.chunks


def _events(*statuses):
    return [json.dumps({"status": s}).encode() + b"\r\n" for s in statuses]


def _reachable():
    patcher = mock.patch("urllib.request.urlopen")
    urlopen = patcher.start()
    urlopen.return_value.__enter__.return_value.status = 200
    return patcher


@pytest.mark.parametrize(
    "reference, expected",
    [
        ("quay.io/pygmystack/pygmy:latest", "quay.io/pygmystack/pygmy:latest"),
        ("quay.io/pygmystack/pygmy", "quay.io/pygmystack/pygmy:latest"),
        ("pygmystack/pygmy:latest", "docker.io/pygmystack/pygmy:latest"),
        ("pygmystack/pygmy", "docker.io/pygmystack/pygmy:latest"),
        ("pygmy:latest", "docker.io/pygmy:latest"),
        ("pygmy", "docker.io/pygmy:latest"),
        ("library/docker:dind", "docker.io/library/docker:dind"),
        ("nginx", "docker.io/nginx:latest"),
    ],
)
def test_normalize_reference(reference, expected):
    assert images.normalize_reference(reference) == expected


@pytest.mark.parametrize("reference", ["", "bad image", "a/b/c/d", "x:y:z"])
def test_normalize_reference_rejects_invalid(reference):
    with pytest.raises(ValueError, match="regexp validation"):
        images.normalize_reference(reference)


def test_pull_and_list_nginx():
    client = FakeClient(
        responses={
            ("GET", "/images/json"): [
                {"Id": "sha256:aaa", "RepoTags": ["nginx:latest"], "Size": 10},
                {"Id": "sha256:bbb", "RepoTags": None},
            ]
        },
        chunks=_events(
            "Pulling from library/nginx",
            "Digest: sha256:abc",
            "Status: Downloaded newer image for nginx:latest",
        ),
    )
    patcher = _reachable()
    try:
        result = images.pull(client, "nginx:latest")
    finally:
        patcher.stop()
    assert "docker.io/nginx:latest" in result
    assert result == "Successfully pulled docker.io/nginx:latest"

    listed = images.list_images(client)
    assert any("nginx:latest" in image.repo_tags for image in listed)
    assert listed[1].repo_tags == []
    assert ("GET", "/images/json", {"all": 1}, None) in client.calls


def test_pull_up_to_date_on_private_registry():
    client = FakeClient(chunks=_events("Status: Image is up to date for quay.io/org/app:1"))
    assert images.pull(client, "quay.io/org/app:1") == "Image quay.io/org/app:1 is up to date"
    assert client.calls[0][2] == {"fromImage": "quay.io/org/app:1"}


def test_pull_stream_split_across_chunks():
    data = b"".join(_events("one", "Status: Downloaded newer image for x"))
    chunks = [data[i : i + 5] for i in range(0, len(data), 5)]
    client = FakeClient(chunks=chunks)
    assert images.pull(client, "quay.io/org/app") == "Successfully pulled quay.io/org/app:latest"


def test_pull_returns_last_status_otherwise():
    client = FakeClient(chunks=_events("Waiting", "Extracting"))
    assert images.pull(client, "quay.io/org/app:2") == "Extracting"


def test_pull_access_denied_is_reported():
    client = FakeClient(stream_error=DockerError(404, "pull access denied for quay.io/org/app"))
    assert (
        images.pull(client, "quay.io/org/app:2")
        == "Error trying to update image quay.io/org/app:2: pull access denied"
    )


def test_pull_other_error_returns_reference():
    client = FakeClient(stream_error=DockerError(500, "boom"))
    assert images.pull(client, "quay.io/org/app") == "quay.io/org/app:latest"


def test_pull_unreachable_hub_raises():
    client = FakeClient()
    with mock.patch("urllib.request.urlopen", side_effect=OSError("down")):
        with pytest.raises(ConnectionError, match="Docker Hub Registry"):
            images.pull(client, "nginx")
    assert client.calls == []


def test_pull_invalid_reference_raises():
    with pytest.raises(ValueError):
        images.pull(FakeClient(), "not valid")


def test_remove_returns_records():
    client = FakeClient(responses={("DELETE", "/images/nginx:latest"): [{"Untagged": "nginx:latest"}]})
    assert images.remove(client, "nginx:latest") == [{"Untagged": "nginx:latest"}]


def test_remove_missing_image_raises():
    client = FakeClient(responses={("DELETE", "/images/none"): DockerError(404, "no such image")})
    with pytest.raises(DockerError):
        images.remove(client, "none")