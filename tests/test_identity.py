from datetime import datetime, timedelta, timezone

from storefront.identity import Identity, Role, TokenVerifier, decode, encode

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_issue_then_verify(alice: Identity, admin: Identity) -> None:
    verifier = TokenVerifier(secret="s3cret")

    assert verifier.verify(verifier.issue(alice, now=NOW), now=NOW) == alice
    assert verifier.verify(f"Bearer {verifier.issue(admin, now=NOW)}", now=NOW) == admin
    assert verifier.verify(f"bearer   {verifier.issue(alice, now=NOW)}", now=NOW) == alice


def test_missing_or_malformed_credentials(alice: Identity) -> None:
    verifier = TokenVerifier(secret="s3cret")
    assert verifier.verify(None) is None
    assert verifier.verify("") is None
    assert verifier.verify("Bearer not-a-token") is None
    assert verifier.verify("a.b.c") is None


def test_signature_from_another_secret_is_rejected(alice: Identity) -> None:
    token = TokenVerifier(secret="other").issue(alice, now=NOW)
    assert TokenVerifier(secret="s3cret").verify(token, now=NOW) is None


def test_tampered_payload_is_rejected(admin: Identity) -> None:
    verifier = TokenVerifier(secret="s3cret")
    header, _, signature = verifier.issue(Identity(id="u-1", email="x@example.com"), now=NOW).split(".")
    forged_payload = encode({"sub": "u-1", "role": "admin", "exp": 9999999999}, "guess").split(".")[1]
    assert verifier.verify(f"{header}.{forged_payload}.{signature}", now=NOW) is None


def test_expired_token(alice: Identity) -> None:
    verifier = TokenVerifier(secret="s3cret", ttl=timedelta(minutes=5))
    token = verifier.issue(alice, now=NOW)
    assert verifier.verify(token, now=NOW + timedelta(minutes=4)) == alice
    assert verifier.verify(token, now=NOW + timedelta(minutes=6)) is None


def test_unknown_role_or_missing_subject() -> None:
    verifier = TokenVerifier(secret="s3cret")
    exp = int((NOW + timedelta(hours=1)).timestamp())

    assert verifier.verify(encode({"sub": "u-1", "role": "root", "exp": exp}, "s3cret"), now=NOW) is None
    assert verifier.verify(encode({"role": "customer", "exp": exp}, "s3cret"), now=NOW) is None
    assert verifier.verify(encode({"sub": "u-1"}, "s3cret"), now=NOW) is None

    plain = verifier.verify(encode({"sub": 7, "exp": exp}, "s3cret"), now=NOW)
    assert plain == Identity(id="7", email="", role=Role.CUSTOMER)


def test_decode_returns_payload_only_for_valid_signature() -> None:
    token = encode({"sub": "u-1", "n": 1}, "k")
    assert decode(token, "k") == {"sub": "u-1", "n": 1}
    assert decode(token, "j") is None
    assert decode("only.two", "k") is None
