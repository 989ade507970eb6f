"""
Base factory classes and utilities.

Service types are plain dataclasses, so factories build them directly
with factory_boy's default ``Factory`` strategy.
"""
import random

import factory
from faker import Faker

fake = Faker()


class BaseFactory(factory.Factory):
    """Base factory for all dataclass factories."""

    class Meta:
        abstract = True


def generate_repo_name() -> str:
    """A valid repository directory name (without ``.git``)."""
    return fake.slug()


def generate_tailnet_ip() -> str:
    """A random address inside 100.64.0.0/10."""
    return f"100.{random.randint(64, 127)}.{random.randint(0, 255)}.{random.randint(0, 255)}"


def generate_public_ip() -> str:
    """A random address outside 100.64.0.0/10."""
    while True:
        address = fake.ipv4_public()
        first, second = (int(part) for part in address.split(".")[:2])
        if not (first == 100 and 64 <= second <= 127):
            return address
