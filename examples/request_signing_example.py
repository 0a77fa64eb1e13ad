#!/usr/bin/env python3
"""
Pay API Python SDK - Request Signing Example

This example shows how the SDK signs Pay API requests with RSASSA-PSS:
the canonical request, the string to sign, the headers a request carries,
checkout button signatures and the errors raised for bad input. It uses a
throwaway RSA key and never contacts the service.
"""

import json
import sys
import os

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from payapi_sdk import (
    ApiConfiguration,
    ApiRequest,
    PayApiClient,
    PayApiSDKError,
    Region,
    RetryPolicy,
    SigningError,
    ValidationError,
)


def generate_demo_key() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode('ascii')


def create_demo_client() -> PayApiClient:
    config = ApiConfiguration(
        public_key_id="SANDBOX-DEMOKEY",
        private_key=generate_demo_key(),
        region=Region.EU,
        retry_policy=RetryPolicy(max_retries=2, total_timeout=20),
        log_canonical_requests=True,
    )
    return PayApiClient(config)


def canonical_request_example(client: PayApiClient):
    """Show the canonical request and string to sign for a POST"""
    print("=== Canonical Request Example ===")

    request = client.build_request(
        "POST",
        "checkoutSessions",
        {"webCheckoutDetails": {"checkoutReviewReturnUrl": "https://shop.example/review"},
         "storeId": "amzn1.application-oa2-client.demo"},
        query={"lang": "de-DE"},
    )
    signed = client.signer.sign_request(client.dispatcher.prepare(request))

    print("Canonical request:")
    print(signed.context.canonical_request)
    print("\nString to sign:")
    print(signed.context.string_to_sign)
    print("\nHeaders to send:")
    for name, value in signed.headers.items():
        print(f"  {name}: {value[:72]}{'...' if len(value) > 72 else ''}")


def signed_headers_example(client: PayApiClient):
    """Sign a request for use with another HTTP stack"""
    print("\n=== Signed Headers Example ===")

    headers = client.get_signed_headers("GET", "chargePermissions/S02-1234567-1234567")
    print(json.dumps(headers, indent=2))


def button_signature_example(client: PayApiClient):
    """Sign a checkout button payload"""
    print("\n=== Button Signature Example ===")

    payload = {
        "webCheckoutDetails": {"checkoutReviewReturnUrl": "https://shop.example/review"},
        "storeId": "amzn1.application-oa2-client.demo",
    }
    signature = client.generate_button_signature(payload)
    print(f"Payload:   {json.dumps(payload, separators=(',', ':'))}")
    print(f"Signature: {signature[:48]}...")


def error_handling_example(client: PayApiClient):
    """Show the errors raised for malformed input"""
    print("\n=== Error Handling Example ===")

    try:
        ApiRequest("TRACE", "https://pay-api.amazon.eu/sandbox/v2/buyers/B1")
    except ValidationError as e:
        print(f"Unsupported method rejected: {e} ({e.error_code})")

    try:
        ApiRequest("GET", "ftp://pay-api.amazon.eu/")
    except ValidationError as e:
        print(f"Bad URL rejected: {e} ({e.error_code})")

    try:
        client.generate_button_signature("")
    except SigningError as e:
        print(f"Empty payload rejected: {e}")


def main():
    """Run all examples"""
    try:
        with create_demo_client() as client:
            canonical_request_example(client)
            signed_headers_example(client)
            button_signature_example(client)
            error_handling_example(client)
    except PayApiSDKError as e:
        print(f"Example failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
