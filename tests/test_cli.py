"""
Test suite for the payapi-cli command-line interface
"""

import argparse
import base64
import json
from unittest.mock import patch

import pytest

from payapi_sdk.cli import create_parser, main, parse_headers, parse_query
from payapi_sdk.http_client import ResponseEnvelope
from payapi_sdk.signing import HttpMethod, hash_then_hex_encode


def button_string_to_sign(payload: str) -> str:
    return "AMZN-PAY-RSASSA-PSS\n" + hash_then_hex_encode(payload)


@pytest.fixture
def config_file(tmp_path, private_key_pem):
    key_file = tmp_path / "private.pem"
    key_file.write_text(private_key_pem)
    path = tmp_path / "payapi.json"
    path.write_text(json.dumps({
        "public_key_id": "SANDBOX-CLIKEY",
        "private_key": str(key_file),
        "region": "eu",
    }))
    return str(path)


class TestArgumentParsing:

    def test_parse_headers(self):
        assert parse_headers(["X-Custom: a b", "accept:text/plain"]) == {
            "X-Custom": "a b",
            "accept": "text/plain",
        }

    def test_parse_headers_invalid(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_headers(["no-separator"])

    def test_parse_query(self):
        assert parse_query(["a=1", "b=", "c=x=y"]) == [("a", "1"), ("b", ""), ("c", "x=y")]

    def test_parse_query_invalid(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_query(["novalue"])

    def test_payload_source_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["sign-payload"])


class TestCommands:
    """Test subcommand handling"""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "payapi-cli" in capsys.readouterr().out

    def test_sign_payload(self, config_file, capsys, verify_signature):
        payload = '{"webCheckoutDetails":{"checkoutReviewReturnUrl":"https://shop.test/review"}}'

        assert main(["--config", config_file, "sign-payload", "--payload", payload]) == 0

        signature = capsys.readouterr().out.strip()
        verify_signature(base64.b64decode(signature), button_string_to_sign(payload))

    def test_sign_payload_from_file(self, config_file, tmp_path, capsys, verify_signature):
        payload_file = tmp_path / "payload.json"
        payload_file.write_text('{"storeId":"S1"}\n')

        assert main(["--config", config_file, "sign-payload", "--payload-file", str(payload_file)]) == 0

        verify_signature(
            base64.b64decode(capsys.readouterr().out.strip()),
            button_string_to_sign('{"storeId":"S1"}'),
        )

    def test_canonical_request(self, config_file, capsys):
        exit_code = main([
            "--config", config_file, "canonical-request",
            "--method", "POST", "--resource", "checkoutSessions",
            "--body", "{}", "--query", "b=2", "--query", "a=1",
        ])

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "Canonical request:\nPOST\n/sandbox/v2/checkoutSessions\na=1&b=2\n" in output
        assert "String to sign:\nAMZN-PAY-RSASSA-PSS\n" in output
        assert "x-amz-pay-idempotency-key" in output
        assert "authorization: AMZN-PAY-RSASSA-PSS PublicKeyId=SANDBOX-CLIKEY" in output

    def test_call_prints_envelope(self, config_file, capsys):
        envelope = ResponseEnvelope(
            status_code=200,
            raw_body='{"buyerId": "B1"}',
            request_id="req-1",
            url="https://pay-api.amazon.eu/sandbox/v2/buyers/B1",
            method=HttpMethod.GET,
        )
        with patch("payapi_sdk.client.PayApiClient.call_api", return_value=envelope) as call_api:
            exit_code = main(["--config", config_file, "call", "--resource", "buyers/B1"])

        assert exit_code == 0
        call_api.assert_called_once_with("GET", "buyers/B1", None, {}, [])
        output = json.loads(capsys.readouterr().out)
        assert output["status_code"] == 200
        assert output["method"] == "GET"
        assert output["request_id"] == "req-1"

    def test_call_error_status_exit_code(self, config_file, capsys):
        envelope = ResponseEnvelope(status_code=404, raw_body="{}", method=HttpMethod.GET)
        with patch("payapi_sdk.client.PayApiClient.call_api", return_value=envelope):
            assert main(["--config", config_file, "call", "--resource", "buyers/missing"]) == 2

    def test_missing_config_file(self, tmp_path, capsys):
        exit_code = main(["--config", str(tmp_path / "absent.json"), "sign-payload", "--payload", "{}"])

        assert exit_code == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_header_argument(self, config_file, capsys):
        exit_code = main([
            "--config", config_file, "canonical-request",
            "--resource", "buyers/B1", "--header", "broken",
        ])

        assert exit_code == 1
        assert "Invalid header" in capsys.readouterr().err
