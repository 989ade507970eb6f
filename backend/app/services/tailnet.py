"""
Client address classification.

Picks the client address out of the peer address and proxy headers, and
decides whether it belongs to the private overlay network (the 100.64.0.0/10
shared address space).
"""
import ipaddress
import logging

logger = logging.getLogger(__name__)

TRUSTED_NETWORK = ipaddress.IPv4Network("100.64.0.0/10")


def clean_ip_string(value: str) -> str:
    """Strip brackets and port suffixes from an address literal.

    ``[::1]:8080`` -> ``::1``, ``10.0.0.1:443`` -> ``10.0.0.1``. A literal
    with more than one colon and no brackets is a bare IPv6 address and is
    returned as-is.
    """
    value = value.strip()
    if value.startswith("["):
        idx = value.rfind("]:")
        if idx != -1:
            return value[1:idx]
        if value.endswith("]"):
            return value[1:-1]
        return value
    if value.count(":") == 1:
        return value.rsplit(":", 1)[0]
    return value


def get_client_ip(remote_addr: str | None, forwarded_for: str | None = None, real_ip: str | None = None) -> str:
    """Resolve the client address: X-Real-IP, then first X-Forwarded-For hop, then peer."""
    if real_ip:
        return clean_ip_string(real_ip)
    if forwarded_for:
        return clean_ip_string(forwarded_for.split(",")[0].strip())
    return clean_ip_string(remote_addr or "")


def is_tailnet_ip(value: str, network: ipaddress.IPv4Network = TRUSTED_NETWORK) -> bool:
    """True iff ``value`` is an IPv4 literal inside the trusted network.

    Accepts raw literals with brackets or a port as well as the output of
    get_client_ip; clean_ip_string leaves an already clean address unchanged.
    IPv6 literals (including IPv4-mapped ones) and anything unparsable are
    untrusted; malformed input never raises.
    """
    try:
        addr = ipaddress.ip_address(clean_ip_string(value))
    except ValueError:
        if value:
            logger.debug("Unparsable client address %r treated as untrusted", value)
        return False
    if not isinstance(addr, ipaddress.IPv4Address):
        return False
    return addr in network
