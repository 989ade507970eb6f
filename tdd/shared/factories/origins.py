"""
Factories for request origins as seen by the access gate.
"""
import sys
from pathlib import Path

import factory

# Add backend to path for imports
backend_path = Path(__file__).parent.parent.parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from app.services.access import ClientOrigin

from .base import BaseFactory, generate_public_ip, generate_tailnet_ip


class ClientOriginFactory(BaseFactory):
    """Factory for ClientOrigin instances; untrusted direct peer by default."""

    class Meta:
        model = ClientOrigin

    remote_addr = factory.LazyFunction(generate_public_ip)
    forwarded_for = None
    real_ip = None

    class Params:
        """Parameters for origins in specific network positions."""

        tailnet = factory.Trait(
            remote_addr=factory.LazyFunction(generate_tailnet_ip),
        )
        behind_proxy = factory.Trait(
            remote_addr="127.0.0.1",
            real_ip=factory.LazyFunction(generate_public_ip),
        )
        tailnet_behind_proxy = factory.Trait(
            remote_addr="127.0.0.1",
            real_ip=factory.LazyFunction(generate_tailnet_ip),
        )
