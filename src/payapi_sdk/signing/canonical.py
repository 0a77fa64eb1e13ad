"""
Canonical request components

Pure functions that turn the path, query parameters, headers and body of a
request into the fixed string encodings covered by the signature. Two requests
that differ in any signed component produce different canonical strings; two
identical requests always produce the same ones.
"""

import hashlib
from typing import List, Mapping, Tuple, Union
from urllib.parse import quote

from .types import QueryParams, RequestBody

# RFC 3986 unreserved characters are never encoded; quote() keeps
# letters, digits and "_.-~" bare, so only the path separator is added.
_PATH_SAFE = '/'
_QUERY_SAFE = ''


def canonicalize_uri(path: str) -> str:
    """
    Canonicalize a URI path.

    Args:
        path: Raw path as it appears in the request URL

    Returns:
        str: Percent-encoded path with a leading slash; "/" for an empty path
    """
    if not path:
        return '/'

    encoded = quote(path, safe=_PATH_SAFE)
    if not encoded.startswith('/'):
        encoded = '/' + encoded
    return encoded


def _query_pairs(params: QueryParams) -> List[Tuple[str, str]]:
    if not params:
        return []

    if isinstance(params, Mapping):
        pairs = []
        for key, value in params.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((str(key), str(v)) for v in value)
            else:
                pairs.append((str(key), str(value)))
        return pairs

    return [(str(key), str(value)) for key, value in params]


def canonicalize_query(params: QueryParams) -> str:
    """
    Canonicalize query parameters.

    Parameters are sorted by key, then by value, comparing UTF-8 bytes. Keys
    and values are percent-encoded independently.

    Args:
        params: Ordered (key, value) pairs or a mapping of key to value(s)

    Returns:
        str: key=value pairs joined with "&"; empty string when there are none
    """
    pairs = sorted(
        _query_pairs(params),
        key=lambda pair: (pair[0].encode('utf-8'), pair[1].encode('utf-8'))
    )
    return '&'.join(
        f"{quote(key, safe=_QUERY_SAFE)}={quote(value, safe=_QUERY_SAFE)}"
        for key, value in pairs
    )


def _normalize_header_value(value: str) -> str:
    return ' '.join(str(value).split())


def _sorted_headers(headers: Mapping[str, str]) -> List[Tuple[str, str]]:
    normalized = {name.strip().lower(): value for name, value in headers.items()}
    return sorted(normalized.items(), key=lambda item: item[0].encode('utf-8'))


def canonicalize_headers(headers: Mapping[str, str]) -> str:
    """
    Canonicalize the signed header block.

    Args:
        headers: Header name to value mapping

    Returns:
        str: One "name:value\\n" line per header, sorted by lower-cased name
    """
    return ''.join(
        f"{name}:{_normalize_header_value(value)}\n"
        for name, value in _sorted_headers(headers)
    )


def signed_header_names(headers: Mapping[str, str]) -> str:
    """
    List signed header names.

    Args:
        headers: Header name to value mapping

    Returns:
        str: Lower-cased names in canonical order joined with ";"
    """
    return ';'.join(name for name, _ in _sorted_headers(headers))


def hash_then_hex_encode(payload: RequestBody) -> str:
    """
    SHA-256 a payload and hex-encode the digest.

    Args:
        payload: Text (UTF-8 encoded before hashing), bytes, or None for no body

    Returns:
        str: Lower-case hex digest; an absent payload hashes like ""
    """
    if payload is None:
        payload = b''
    elif isinstance(payload, str):
        payload = payload.encode('utf-8')
    return hashlib.sha256(payload).hexdigest()


class CanonicalBuilder:
    """Groups the canonicalization functions so they can be injected into a signer."""

    def canonicalize_uri(self, path: str) -> str:
        return canonicalize_uri(path)

    def canonicalize_query(self, params: QueryParams) -> str:
        return canonicalize_query(params)

    def canonicalize_headers(self, headers: Mapping[str, str]) -> str:
        return canonicalize_headers(headers)

    def signed_header_names(self, headers: Mapping[str, str]) -> str:
        return signed_header_names(headers)

    def hash_then_hex_encode(self, payload: Union[str, bytes, None]) -> str:
        return hash_then_hex_encode(payload)
