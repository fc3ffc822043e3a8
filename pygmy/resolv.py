"""Route a local domain suffix to the dnsmasq container through the system resolver."""

import os
import shlex
import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass

from pygmy.color import cprint, green, red

LOOPBACK_ALIAS = "172.16.172.16"

_REGISTRY_KEY = "HKLM:\\SYSTEM\\CurrentControlSet\\Services\\Tcpip\\Parameters"


def _shell(command, capture=False):
    """Run ``command`` through ``sh -c``; return its standard output."""
    result = subprocess.run(
        ["sh", "-c", command],
        stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=True,
    )
    return result.stdout or b""


def _run(args):
    """Run a command built from ``args`` in a shell, printing any failure."""
    try:
        _shell(" ".join(shlex.quote(arg) for arg in args))
    except (subprocess.CalledProcessError, OSError) as exc:
        print(exc)
        return False
    return True


def _powershell(command):
    """Run a PowerShell command; return its combined output."""
    executable = shutil.which("powershell")
    if executable is None:
        message = 'exec: "powershell": executable file not found in %PATH%'
        print(message)
        raise FileNotFoundError(message)
    try:
        result = subprocess.run(
            [executable, command],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=True,
        )
    except (subprocess.CalledProcessError, OSError) as exc:
        print(exc)
        raise
    return result.stdout or b""


def _install(content, target):
    """Write ``content`` to a temporary file and copy it into place with sudo."""
    try:
        with tempfile.NamedTemporaryFile("w", prefix="pygmy-", delete=False) as handle:
            temp_name = handle.name
            handle.write(content)
    except OSError as exc:
        print(exc)
        return
    try:
        os.chmod(temp_name, 0o777)
    except OSError as exc:
        print(exc)
    _run(["sudo", "cp", temp_name, target])
    try:
        os.remove(temp_name)
    except OSError:
        pass


@dataclass
class Resolv:
    """A resolver file that sends a domain suffix to the local dnsmasq.

    On Windows the domain is written to the TCP/IP registry parameters instead.
    """

    data: str = ""
    enabled: bool = False
    file: str = ""
    folder: str = ""
    name: str = ""

    @property
    def full_path(self):
        return f"{self.folder}{os.sep}{self.file}"

    # --- checks ---------------------------------------------------------

    def _read(self):
        with open(self.full_path, encoding="utf-8", errors="replace") as handle:
            return handle.read()

    def _status_file_data(self):
        try:
            return self.data in self._read()
        except OSError as exc:
            print(exc)
            return False

    def _status_file(self):
        return os.path.exists(self.full_path)

    def _status_net(self):
        try:
            output = _shell("ifconfig lo0", capture=True)
        except (subprocess.CalledProcessError, OSError) as exc:
            print(exc)
            return False
        return LOOPBACK_ALIAS in output.decode(errors="replace")

    def status(self, params):
        """Return True if the resolver is in place for ``params.domain``."""
        if sys.platform == "win32":
            try:
                output = _powershell(f"Get-ItemProperty -Path {_REGISTRY_KEY}")
            except (subprocess.CalledProcessError, OSError):
                return False
            return any(
                line.startswith("Domain") and params.domain in line
                for line in output.decode(errors="replace").split("\n")
            )
        if sys.platform == "darwin":
            return self._status_file() and self._status_net() and self._status_file_data()
        if not os.path.exists(self.full_path):
            return False
        try:
            content = self._read()
        except OSError as exc:
            print(exc)
            return False
        return self.data in content

    # --- changes --------------------------------------------------------

    def configure(self, params):
        """Install the resolver unless it is disabled or already in place."""
        if not self.enabled:
            return
        if sys.platform == "win32":
            try:
                _powershell(
                    f"Set-ItemProperty -Path {_REGISTRY_KEY} -Name Domain -Value {params.domain}"
                )
            except (subprocess.CalledProcessError, OSError):
                pass
            return

        if self.status(params):
            cprint(green(f"Already configured resolvr {self.name}\n"))
            return

        full_path = self.full_path
        if not os.path.exists(full_path):
            if not os.path.exists(self.folder):
                _run(["sudo", "mkdir", "-p", self.folder])
                _run(["sudo", "chmod", "777", self.folder])
            if not os.path.exists(full_path):
                _install(self.data, full_path)
        elif not self._status_file_data():
            try:
                existing = self._read()
            except OSError as exc:
                print(exc)
                existing = ""
            _install(existing + self.data, full_path)

        if sys.platform == "darwin":
            try:
                _shell(f"sudo ifconfig lo0 alias {LOOPBACK_ALIAS}")
            except (subprocess.CalledProcessError, OSError):
                cprint(red("error creating loopback UP alias"))
            try:
                _shell("sudo killall mDNSResponder")
            except (subprocess.CalledProcessError, OSError):
                cprint(red("error restarting mDNSResponder"))

        if self.status(params):
            cprint(green(f"Successfully configured resolvr {self.name}\n"))

    def clean(self):
        """Remove the resolver and undo the network changes made for it."""
        if sys.platform == "win32":
            try:
                _powershell(f"Clear-ItemProperty -Path {_REGISTRY_KEY} -Name Domain")
            except (subprocess.CalledProcessError, OSError):
                pass
            return

        full_path = self.full_path
        if sys.platform.startswith("linux") and os.path.exists(full_path):
            try:
                content = self._read()
            except OSError as exc:
                print(exc)
            else:
                if self.data in content:
                    _install(content.replace(self.data, ""), full_path)

        if os.path.exists(full_path):
            _run(["sudo", "rm", full_path])
            if not self._status_file():
                cprint(green("Successfully removed resolver file"))

        if sys.platform == "darwin":
            if self._status_net():
                print("Removing loopback alias IP (may require sudo)")
                try:
                    _shell(f"sudo ifconfig lo0 -alias {LOOPBACK_ALIAS}")
                except (subprocess.CalledProcessError, OSError) as exc:
                    cprint(red("error removing loopback UP alias\n") + red(exc))
                else:
                    if not self._status_net():
                        cprint(green("Successfully removed loopback alias IP.\n"))
            try:
                _shell("sudo killall mDNSResponder\n")
            except (subprocess.CalledProcessError, OSError):
                cprint(red("error restarting mDNSResponder\n"))
            else:
                cprint(green("Successfully restarted mDNSResponder\n"))