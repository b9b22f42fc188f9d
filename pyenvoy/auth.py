# pyEnvoy Module - Challenge / Response Authentication
# -*- coding: utf-8 -*-
"""
 Envoy challenge-response authentication

 The Envoy answers an unauthenticated request with HTTP 401 and a
 WWW-Authenticate header (Digest by default, Basic on some firmware).
 This module turns that header into a Challenge and answers it once,
 producing a Credential that is reused for every later request.

 Functions
    parse_challenges(header)                       # all challenges in a header
    decode_challenge(header)                       # best supported Challenge
    respond(challenge, username, password, ...)    # Credential for the challenge

 No network I/O happens here.
"""
import base64
import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import quote
from urllib.request import parse_http_list

from requests.utils import unquote_header_value

from pyenvoy.exceptions import MalformedChallenge, UnsupportedScheme

log = logging.getLogger(__name__)

DIGEST = "Digest"
BASIC = "Basic"
SUPPORTED_SCHEMES = (DIGEST, BASIC)  # in order of preference

# Request the token is scoped to - the device accepts it for any path afterwards
HANDSHAKE_METHOD = "GET"
HANDSHAKE_URI = "*"
NONCE_COUNT = "00000001"

DIGEST_ALGORITHMS = {
    'MD5': hashlib.md5,
    'MD5-SESS': hashlib.md5,
    'SHA-256': hashlib.sha256,
    'SHA-256-SESS': hashlib.sha256,
}

_SCHEME_ITEM = re.compile(r"([!#$%&'*+.^_`|~0-9A-Za-z-]+)(?:\s+(.*))?", re.S)


@dataclass(frozen=True)
class Challenge:
    scheme: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def realm(self) -> Optional[str]:
        return self.params.get('realm')

    @property
    def nonce(self) -> Optional[str]:
        return self.params.get('nonce')

    @property
    def opaque(self) -> Optional[str]:
        return self.params.get('opaque')

    @property
    def algorithm(self) -> str:
        return self.params.get('algorithm') or 'MD5'

    @property
    def qop(self) -> List[str]:
        raw = self.params.get('qop') or ''
        return [q.strip().lower() for q in raw.split(',') if q.strip()]


@dataclass(frozen=True)
class Credential:
    """Ready to use Authorization header value - created once, never refreshed"""
    scheme: str
    header: str = field(repr=False)

    def as_headers(self) -> Dict[str, str]:
        return {'Authorization': self.header}


def _canonical_scheme(name: str) -> str:
    for scheme in SUPPORTED_SCHEMES:
        if scheme.lower() == name.lower():
            return scheme
    return name


def _add_param(challenge: Challenge, item: str, header: str):
    if '=' not in item:
        raise MalformedChallenge(f"Unable to parse parameter '{item}' in WWW-Authenticate header: {header!r}")
    key, value = item.split('=', 1)
    challenge.params[key.strip().lower()] = unquote_header_value(value.strip())


def parse_challenges(header: str) -> List[Challenge]:
    """
    Split a WWW-Authenticate header into its challenges

    An item that starts with a bare token (no '=') opens a new challenge,
    e.g. 'Digest realm="a", nonce="b", Basic realm="a"' yields two.
    """
    challenges: List[Challenge] = []
    for item in parse_http_list(header):
        item = item.strip()
        if not item:
            continue
        m = _SCHEME_ITEM.fullmatch(item)
        if m and not (m.group(2) or '').startswith('='):
            challenges.append(Challenge(_canonical_scheme(m.group(1))))
            if m.group(2):
                _add_param(challenges[-1], m.group(2), header)
            continue
        if not challenges:
            raise MalformedChallenge(f"WWW-Authenticate header does not start with a scheme: {header!r}")
        _add_param(challenges[-1], item, header)
    return challenges


def decode_challenge(header: Optional[str]) -> Challenge:
    """
    Parse a WWW-Authenticate header and pick the challenge to answer

    Digest is preferred over Basic, but a Digest challenge without realm or
    nonce is passed over. Raises MalformedChallenge if the header is missing,
    cannot be parsed, or offers no scheme we can answer.
    """
    if not header or not header.strip():
        raise MalformedChallenge("Missing WWW-Authenticate header")
    challenges = parse_challenges(header)
    log.debug("Server offered schemes: %s" % ", ".join(c.scheme for c in challenges))
    incomplete = False
    for scheme in SUPPORTED_SCHEMES:
        for challenge in challenges:
            if challenge.scheme != scheme:
                continue
            if scheme == DIGEST and (challenge.realm is None or challenge.nonce is None):
                log.debug("Skipping Digest challenge without realm or nonce")
                incomplete = True
                continue
            return challenge
    if incomplete:
        raise MalformedChallenge(f"Digest challenge missing realm or nonce: {header!r}")
    raise MalformedChallenge(f"No supported authentication scheme in WWW-Authenticate header: {header!r}")


def _quote(value: str) -> str:
    return '"%s"' % value.replace('\\', '\\\\').replace('"', '\\"')


def _username_param(username: str) -> str:
    if username.isascii():
        return f"username={_quote(username)}"
    # RFC 7616 extended notation, header values must stay ASCII
    return "username*=UTF-8''%s" % quote(username, safe='')


def _digest(challenge: Challenge, username: str, password: str, method: str, uri: str,
            cnonce: Optional[str]) -> str:
    algorithm = challenge.algorithm.upper()
    hash_func = DIGEST_ALGORITHMS.get(algorithm)
    if hash_func is None:
        raise UnsupportedScheme(f"Unsupported digest algorithm '{challenge.algorithm}'")

    def h(data: str) -> str:
        return hash_func(data.encode('utf-8')).hexdigest()

    qop_options = challenge.qop
    if not qop_options:
        qop = None
    elif 'auth' in qop_options:
        qop = 'auth'
    elif 'auth-int' in qop_options:
        qop = 'auth-int'
    else:
        raise UnsupportedScheme(f"Unsupported digest qop '{challenge.params.get('qop')}'")
    if qop is None and algorithm.endswith('-SESS'):
        # Without qop there is no cnonce in the header for the server to rebuild HA1 from
        raise UnsupportedScheme(f"Digest algorithm '{challenge.algorithm}' requires qop")

    realm, nonce = challenge.realm, challenge.nonce
    if realm is None or nonce is None:
        raise MalformedChallenge("Digest challenge missing realm or nonce")
    if cnonce is None:
        # Derived, not random, so the same challenge always yields the same token
        cnonce = hashlib.md5(f"{nonce}:{realm}:{username}".encode('utf-8')).hexdigest()[:16]

    ha1 = h(f"{username}:{realm}:{password}")
    if algorithm.endswith('-SESS'):
        ha1 = h(f"{ha1}:{nonce}:{cnonce}")
    if qop == 'auth-int':
        # Handshake request has an empty body
        ha2 = h(f"{method}:{uri}:{h('')}")
    else:
        ha2 = h(f"{method}:{uri}")
    if qop:
        response = h(f"{ha1}:{nonce}:{NONCE_COUNT}:{cnonce}:{qop}:{ha2}")
    else:
        response = h(f"{ha1}:{nonce}:{ha2}")

    parts = [
        _username_param(username),
        f"realm={_quote(realm)}",
        f"nonce={_quote(nonce)}",
        f"uri={_quote(uri)}",
    ]
    if 'algorithm' in challenge.params:
        parts.append(f"algorithm={challenge.params['algorithm']}")
    parts.append(f"response={_quote(response)}")
    if challenge.opaque is not None:
        parts.append(f"opaque={_quote(challenge.opaque)}")
    if qop:
        parts.append(f"qop={qop}, nc={NONCE_COUNT}, cnonce={_quote(cnonce)}")
    return "Digest " + ", ".join(parts)


def respond(challenge: Challenge, username: str, password: str, method: str = HANDSHAKE_METHOD,
            uri: str = HANDSHAKE_URI, cnonce: Optional[str] = None) -> Credential:
    """
    Answer a challenge with a Credential

    Args:
        challenge = decoded Challenge
        username  = device username
        password  = device password
        method    = request method the digest is bound to (default GET)
        uri       = request URI the digest is bound to (default '*')
        cnonce    = client nonce (digest only, derived from the challenge if not given)

    Pure function: identical arguments give an identical Credential.
    """
    if challenge.scheme == DIGEST:
        header = _digest(challenge, username, password, method, uri, cnonce)
    elif challenge.scheme == BASIC:
        token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('ascii')
        header = f"Basic {token}"
    else:
        raise UnsupportedScheme(f"Unsupported authentication scheme '{challenge.scheme}'")
    log.debug(f"Computed {challenge.scheme} credential for {username} ({method} {uri})")
    return Credential(challenge.scheme, header)
