"""A small client for the Docker Engine HTTP API."""

import http.client
import json
import os
import socket
from urllib.parse import urlencode, urlsplit

from pygmy.engine.dockercontext import current_docker_host

DEFAULT_HOST = "unix:///var/run/docker.sock"


class DockerError(Exception):
    """An error answer from the Docker daemon."""

    def __init__(self, status, message):
        super().__init__(message)
        self.status = status
        self.message = message


class _UnixHTTPConnection(http.client.HTTPConnection):
    def __init__(self, path):
        super().__init__("localhost")
        self._socket_path = path

    def connect(self):
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.connect(self._socket_path)
        self.sock = sock


def _error_message(data):
    try:
        return json.loads(data).get("message", data.decode(errors="replace"))
    except (ValueError, AttributeError):
        return data.decode(errors="replace").strip()


class DockerClient:
    """Talks to a Docker daemon over a unix socket or TCP."""

    def __init__(self, host=DEFAULT_HOST):
        self.host = host
        parts = urlsplit(host)
        self._scheme = parts.scheme
        if parts.scheme == "unix":
            self._path = parts.path
        elif parts.scheme in ("tcp", "http", "https"):
            self._address = (parts.hostname, parts.port or (2376 if parts.scheme == "https" else 2375))
        else:
            raise ValueError(f"unsupported Docker host: {host}")

    def _connection(self):
        if self._scheme == "unix":
            return _UnixHTTPConnection(self._path)
        if self._scheme == "https":
            return http.client.HTTPSConnection(*self._address)
        return http.client.HTTPConnection(*self._address)

    @staticmethod
    def _target(path, params):
        return f"{path}?{urlencode(params)}" if params else path

    def _send(self, method, path, params, body):
        conn = self._connection()
        headers = {"Host": "docker"}
        payload = None
        if body is not None:
            payload = json.dumps(body).encode()
            headers["Content-Type"] = "application/json"
        conn.request(method, self._target(path, params), body=payload, headers=headers)
        response = conn.getresponse()
        if response.status >= 400:
            data = response.read()
            conn.close()
            raise DockerError(response.status, _error_message(data))
        return conn, response

    def request(self, method, path, params=None, body=None):
        """Send a request; return decoded JSON, raw bytes, or None for no content."""
        conn, response = self._send(method, path, params, body)
        try:
            data = response.read()
        finally:
            conn.close()
        if not data:
            return None
        if "json" in (response.getheader("Content-Type") or ""):
            return json.loads(data)
        return data

    def stream(self, method, path, params=None, body=None):
        """Send a request and yield the response body in chunks as they arrive."""
        conn, response = self._send(method, path, params, body)
        try:
            while True:
                chunk = response.read1(65536) if hasattr(response, "read1") else response.read(65536)
                if not chunk:
                    break
                yield chunk
        finally:
            conn.close()

    def hijack(self, method, path, params=None):
        """Upgrade a request to a raw stream; return ``(socket, reader)``."""
        if self._scheme == "unix":
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.connect(self._path)
        else:
            sock = socket.create_connection(self._address)
        head = (
            f"{method} {self._target(path, params)} HTTP/1.1\r\n"
            "Host: docker\r\nConnection: Upgrade\r\nUpgrade: tcp\r\n"
            "Content-Length: 0\r\n\r\n"
        )
        sock.sendall(head.encode())
        reader = sock.makefile("rb")
        status_line = reader.readline().decode(errors="replace")
        try:
            status = int(status_line.split()[1])
        except (IndexError, ValueError):
            sock.close()
            raise DockerError(0, f"malformed response: {status_line.strip()}")
        while reader.readline() not in (b"\r\n", b"\n", b""):
            pass
        if status >= 400:
            message = reader.read(4096)
            sock.close()
            raise DockerError(status, _error_message(message))
        return sock, reader


def new_client():
    """Return a client for DOCKER_HOST, the current Docker context or the default socket."""
    env_host = os.environ.get("DOCKER_HOST", "")
    if env_host:
        return DockerClient(env_host)
    return DockerClient(current_docker_host() or DEFAULT_HOST)