from pygmy.engine.containers import PortBinding
from pygmy.service import Params
from pygmy.services import dnsmasq


def _service():
    return dnsmasq.new(Params(domain="docker.amazee.io"))


def test_image_and_command():
    obj = _service()
    assert "pygmystack/dnsmasq" in obj.config.image
    assert obj.config.cmd == ["--log-facility=-", "-A", "/docker.amazee.io/127.0.0.1"]


def test_labels():
    labels = _service().config.labels
    assert labels["pygmy.defaults"] == "true"
    assert labels["pygmy.enable"] == "true"
    assert labels["pygmy.name"] == "amazeeio-dnsmasq"
    assert labels["pygmy.weight"] == "13"


def test_host_config():
    host = _service().host_config
    assert host.auto_remove is False
    assert host.cap_add == ["NET_ADMIN"]
    assert host.ipc_mode == "private"
    assert host.port_bindings == {
        "53/tcp": [PortBinding(host_ip="", host_port="6053")],
        "53/udp": [PortBinding(host_ip="", host_port="6053")],
    }
    assert host.restart_policy.name == "unless-stopped"
    assert host.restart_policy.maximum_retry_count == 0


def test_empty_domain_command():
    obj = dnsmasq.new(Params())
    assert obj.config.cmd[-1] == "//127.0.0.1"


def test_port_bindings_in_api_form():
    api = _service().host_config.to_api()
    assert api["PortBindings"]["53/udp"] == [{"HostIp": "", "HostPort": "6053"}]
    assert api["CapAdd"] == ["NET_ADMIN"]


def test_instances_are_independent():
    first = _service()
    second = _service()
    first.config.labels["pygmy.weight"] = "99"
    assert second.config.labels["pygmy.weight"] == "13"