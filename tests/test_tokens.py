import re

from bench.auth.tokens import generate_token, parse_bearer

BASE64URL = re.compile(r"^[A-Za-z0-9_-]+$")


def test_token_is_unpadded_base64url():
    for _ in range(200):
        token = generate_token()
        assert len(token) == 43
        assert BASE64URL.match(token)
        assert "+" not in token and "/" not in token and "=" not in token


def test_tokens_do_not_repeat():
    tokens = {generate_token() for _ in range(500)}
    assert len(tokens) == 500


def test_parse_bearer():
    assert parse_bearer("Bearer abc123") == "abc123"
    assert parse_bearer("Bearer   abc123  ") == "abc123"
    assert parse_bearer(None) == ""
    assert parse_bearer("") == ""
    assert parse_bearer("Token abc123") == ""
    assert parse_bearer("bearer abc123") == ""
    assert parse_bearer("Bearer ") == ""
