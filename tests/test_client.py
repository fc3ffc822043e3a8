import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from pygmy.engine.client import DockerClient, DockerError, new_client


class _Handler(BaseHTTPRequestHandler):
    def _reply(self, code, body, content_type="application/json"):
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        if self.path.startswith("/info"):
            self._reply(200, json.dumps({"path": self.path}).encode())
        elif self.path == "/raw":
            self._reply(200, b"line1\nline2\n", "text/plain")
        else:
            self._reply(404, json.dumps({"message": "no such thing"}).encode())

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        data = json.loads(self.rfile.read(length))
        self._reply(201, json.dumps({"echo": data}).encode())

    def do_DELETE(self):
        self.send_response(204)
        self.end_headers()

    def log_message(self, *args):
        pass


@pytest.fixture()
def client():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield DockerClient(f"tcp://127.0.0.1:{httpd.server_address[1]}")
    httpd.shutdown()
    httpd.server_close()


def test_request_json_with_params(client):
    result = client.request("GET", "/info", params={"all": 1})
    assert result == {"path": "/info?all=1"}


def test_request_body_round_trip(client):
    body = {"Image": "nginx", "Cmd": ["sh"]}
    assert client.request("POST", "/create", body=body) == {"echo": body}


def test_request_no_content(client):
    assert client.request("DELETE", "/containers/x") is None


def test_request_error_raises(client):
    with pytest.raises(DockerError) as info:
        client.request("GET", "/missing")
    assert info.value.status == 404
    assert info.value.message == "no such thing"


def test_stream_yields_body(client):
    assert b"".join(client.stream("GET", "/raw")) == b"line1\nline2\n"


def test_stream_error_raises(client):
    with pytest.raises(DockerError):
        list(client.stream("GET", "/missing"))


def test_unsupported_scheme():
    with pytest.raises(ValueError):
        DockerClient("ftp://example.com")


def test_new_client_uses_env(monkeypatch):
    monkeypatch.setenv("DOCKER_HOST", "tcp://127.0.0.1:2375")
    assert new_client().host == "tcp://127.0.0.1:2375"


def test_new_client_default(monkeypatch, tmp_path):
    monkeypatch.delenv("DOCKER_HOST", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert new_client().host == "unix:///var/run/docker.sock"