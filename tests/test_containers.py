import struct

import pytest

from pygmy.engine import containers
from pygmy.engine.client import DockerError
from pygmy.engine.containers import (
    ContainerConfig,
    ContainerSummary,
    HostConfig,
    NetworkingConfig,
    PortBinding,
    RestartPolicy,
)


def _frame(stream, payload):
    return struct.pack(">BxxxI", stream, len(payload)) + payload


class FakeClient:
    def __init__(self, responses=None, streams=None):
        self.calls = []
        self.responses = responses or {}
        self.streams = streams or {}

    def request(self, method, path, params=None, body=None):
        self.calls.append((method, path, params, body))
        return self.responses.get((method, path))

    def stream(self, method, path, params=None, body=None):
        self.calls.append((method, path, params, body))
        yield from self.streams.get((method, path), [])

    def hijack(self, method, path, params=None):
        self.calls.append((method, path, params, None))
        return ("sock", "reader")


def test_stop_uses_ten_second_timeout():
    client = FakeClient()
    containers.stop(client, "web")
    assert client.calls == [("POST", "/containers/web/stop", {"t": 10}, None)]


def test_kill_remove_start():
    client = FakeClient()
    containers.kill(client, "a")
    containers.remove(client, "b")
    containers.start(client, "c")
    assert [c[:2] for c in client.calls] == [
        ("POST", "/containers/a/kill"),
        ("DELETE", "/containers/b"),
        ("POST", "/containers/c/start"),
    ]


def test_inspect_returns_document():
    doc = {"State": {"Status": "running"}}
    client = FakeClient(responses={("GET", "/containers/x/json"): doc})
    assert containers.inspect(client, "x")["State"]["Status"] == "running"


def test_list_containers_parses_summaries():
    data = [
        {
            "Id": "abc",
            "Names": ["/testContainer"],
            "Status": "Up 2 seconds",
            "Labels": {"pygmy.name": "amazeeio-haproxy"},
            "NetworkSettings": {"Networks": {"amazeeio-network": {}}},
        }
    ]
    client = FakeClient(responses={("GET", "/containers/json"): data})
    result = containers.list_containers(client)
    assert result[0].id == "abc"
    assert result[0].names[0].lstrip("/") == "testContainer"
    assert "amazeeio-network" in result[0].networks
    assert client.calls[0][2] == {"all": 1}


def test_exec_splits_command_and_demuxes():
    client = FakeClient(
        responses={("POST", "/containers/x/exec"): {"Id": "e1"}},
        streams={("POST", "/exec/e1/start"): [_frame(1, b"hello\n")]},
    )
    output = containers.exec_command(client, "x", "echo hello")
    assert b"hello" in output
    assert client.calls[0][3]["Cmd"] == ["echo", "hello"]


def test_logs_demuxes_both_streams():
    client = FakeClient(
        streams={("GET", "/containers/x/logs"): [_frame(1, b"hello "), _frame(2, b"world")]}
    )
    assert containers.logs(client, "x") == b"hello world"


def test_logs_raw_tty_output_untouched():
    client = FakeClient(streams={("GET", "/containers/x/logs"): [b"hello world\n"]})
    assert containers.logs(client, "x") == b"hello world\n"


def test_create_sends_configs():
    client = FakeClient(responses={("POST", "/containers/create"): {"Id": "new"}})
    config = ContainerConfig(image="nginx", cmd=["sh", "-c", "echo 42"])
    host = HostConfig(
        port_bindings={"53/tcp": [PortBinding(host_port="6053")]},
        restart_policy=RestartPolicy(name="unless-stopped"),
    )
    result = containers.create(client, "web", config, host, NetworkingConfig())
    assert result == {"Id": "new"}
    _, _, params, body = client.calls[0]
    assert params["name"] == "web"
    assert params["platform"].startswith("linux/")
    assert body["Image"] == "nginx"
    assert body["Cmd"] == ["sh", "-c", "echo 42"]
    assert body["HostConfig"]["PortBindings"] == {"53/tcp": [{"HostIp": "", "HostPort": "6053"}]}
    assert body["HostConfig"]["RestartPolicy"]["Name"] == "unless-stopped"


def test_wait_raises_on_error_message():
    client = FakeClient(responses={("POST", "/containers/x/wait"): {"StatusCode": 1, "Error": {"Message": "boom"}}})
    with pytest.raises(DockerError):
        containers.wait(client, "x")


def test_wait_passes_condition():
    client = FakeClient(responses={("POST", "/containers/x/wait"): {"StatusCode": 1}})
    containers.wait(client, "x", "not-running")
    assert client.calls[0][2] == {"condition": "not-running"}


def test_attach_params():
    client = FakeClient()
    assert containers.attach(client, "x", stdin=True) == ("sock", "reader")
    assert client.calls[0][2]["stdin"] == 1
    assert client.calls[0][2]["logs"] == 0


def test_summary_from_empty():
    summary = ContainerSummary.from_api({})
    assert summary.names == [] and summary.labels == {}
    assert HostConfig().to_api().get("PortBindings") is None
    assert ContainerConfig(exposed_ports={"80/tcp"}).to_api()["ExposedPorts"] == {"80/tcp": {}}