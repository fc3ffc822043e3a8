"""Check that an HTTP or HTTPS endpoint is serving."""

import ssl
import urllib.error
import urllib.request


def validate(url):
    """Return True unless the request fails or answers with a 501-599 status.

    Certificate verification is disabled.
    """
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    try:
        request = urllib.request.Request(url, method="GET")
    except ValueError:
        return False
    try:
        with urllib.request.urlopen(request, context=context) as response:
            status = response.status
    except urllib.error.HTTPError as exc:
        status = exc.code
    except (urllib.error.URLError, OSError, ValueError):
        return False
    return not 501 <= status < 600