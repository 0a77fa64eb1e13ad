"""
Shared fixtures for the Pay API SDK test suite
"""

import pytest
import requests
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from payapi_sdk.config import ApiConfiguration, Region, RetryPolicy



class FakeClock:
    """Clock whose time only moves when sleep() is called"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key):
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key(rsa_private_key):
    return rsa_private_key.public_key()


@pytest.fixture
def verify_signature(public_key):
    """Return a function that verifies an RSA-PSS signature over a string."""
    def verify(signature: bytes, message: str) -> None:
        public_key.verify(
            signature,
            message.encode("utf-8"),
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=20),
            hashes.SHA256(),
        )
    return verify


@pytest.fixture
def config(private_key_pem):
    return ApiConfiguration(
        public_key_id="SANDBOX-TESTKEY",
        private_key=private_key_pem,
        region=Region.EU,
        retry_policy=RetryPolicy(max_retries=3),
    )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_response():
    """Return a factory for requests.Response objects with canned content."""
    def factory(status_code: int, body: bytes = b"", headers=None) -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response._content = body
        response._content_consumed = True
        response.headers.update(headers or {})
        return response
    return factory
