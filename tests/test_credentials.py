import jwt
import pytest

from dropkey_core.credentials import CredentialIssuer
from dropkey_core.errors import DropKeyError, ErrorKind
from dropkey_core.storage import IdentityRecord

IDENTITY = IdentityRecord(id="0b7d1f0e-7d55-4c39-9d59-0a4d1b2f3c4e", public_key="PmUPAT+CAkeISk6GDWwhPW2d4mvpwPz/9AWaaOl30xs=")


def test_issue_and_parse(issuer, clock):
    token = issuer.issue(IDENTITY)
    claims = issuer.parse(token)
    assert claims.user_id == IDENTITY.id
    assert claims.public_key == IDENTITY.public_key
    assert (claims.expires_at - clock()).total_seconds() == 3600


def test_expired_credential(issuer, clock):
    token = issuer.issue(IDENTITY)
    clock.advance(3600)
    with pytest.raises(DropKeyError) as ei:
        issuer.parse(token)
    assert ei.value.kind is ErrorKind.UNAUTHORIZED


def test_wrong_secret_and_issuer(issuer, clock):
    token = issuer.issue(IDENTITY)
    with pytest.raises(DropKeyError):
        CredentialIssuer("dropkey-other-secret-0123456789abcdef", clock=clock).parse(token)
    with pytest.raises(DropKeyError):
        CredentialIssuer("dropkey-test-secret-0123456789abcdef", issuer="someone-else", clock=clock).parse(token)


def test_tampered_or_unsigned_tokens(issuer):
    forged = jwt.encode({"sub": IDENTITY.id, "public_key": "x", "exp": 9999999999, "iss": "dropkey"},
                        "dropkey-guessed-secret-0123456789abcd", algorithm="HS256")
    for token in [forged, "garbage", "a.b.c"]:
        with pytest.raises(DropKeyError) as ei:
            issuer.parse(token)
        assert ei.value.kind is ErrorKind.UNAUTHORIZED


def test_missing_public_key_claim(clock):
    token = jwt.encode({"sub": IDENTITY.id, "exp": 9999999999, "iss": "dropkey"}, "dropkey-test-secret-0123456789abcdef", algorithm="HS256")
    with pytest.raises(DropKeyError):
        CredentialIssuer("dropkey-test-secret-0123456789abcdef", clock=clock).parse(token)


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer", "Bearer a b"])
def test_bad_authorization_header(header):
    with pytest.raises(DropKeyError) as ei:
        CredentialIssuer.from_header(header)
    assert ei.value.kind is ErrorKind.UNAUTHORIZED


def test_header_scheme_is_case_insensitive():
    assert CredentialIssuer.from_header("bearer tok") == "tok"


def test_secret_required():
    with pytest.raises(ValueError):
        CredentialIssuer("")
