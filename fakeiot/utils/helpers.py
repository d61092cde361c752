"""
Helpers for the fake IoT simulator.
Certificate parsing and duration parsing used by the CLI and the client.
"""

import re
import ssl

from fakeiot.core.errors import InvalidConfiguration

_PEM_CERT_RE = re.compile(
    r"-----BEGIN CERTIFICATE-----\s*.+?\s*-----END CERTIFICATE-----",
    re.DOTALL,
)

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_certificate_pem(data) -> str:
    """
    Parse a PEM-encoded certificate.

    Args:
        data: PEM file contents, bytes or str

    Returns:
        The first certificate block as PEM text

    Raises:
        InvalidConfiguration: if there is no usable certificate block
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("ascii")
        except UnicodeDecodeError as e:
            raise InvalidConfiguration(f"certificate is not PEM text: {e}") from e
    if not data or not data.strip():
        raise InvalidConfiguration("missing PEM encoded block")

    match = _PEM_CERT_RE.search(data)
    if match is None:
        raise InvalidConfiguration("expected PEM-encoded block")

    pem = match.group(0)
    try:
        ssl.PEM_cert_to_DER_cert(pem)
    except ValueError as e:
        raise InvalidConfiguration(f"malformed PEM certificate: {e}") from e
    return pem + "\n"


def parse_duration(text: str) -> float:
    """
    Parse a duration such as "30s", "1m30s", "250ms" or a bare number of seconds.

    Returns:
        Duration in seconds
    """
    value = text.strip()
    if not value:
        raise ValueError("empty duration")
    try:
        return float(value)
    except ValueError:
        pass

    sign = 1.0
    if value[0] in "+-":
        sign = -1.0 if value[0] == "-" else 1.0
        value = value[1:]

    total = 0.0
    pos = 0
    while pos < len(value):
        match = _DURATION_PART_RE.match(value, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0:
        raise ValueError(f"invalid duration {text!r}")
    return sign * total


def format_duration(seconds: float) -> str:
    if seconds >= 1 and float(seconds).is_integer():
        return f"{int(seconds)}s"
    return f"{seconds:g}s"
