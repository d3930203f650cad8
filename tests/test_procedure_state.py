"""Submission procedure state machine: begin / sign / submit ordering."""

from __future__ import annotations

import asyncio

import pytest

from nextid_sdk.errors import (
    NetworkError,
    ParsingError,
    PayloadExpired,
    ProcedureStateError,
    ServerRejected,
    SigningError,
)
from nextid_sdk.kv_service import KVServiceClient
from nextid_sdk.models.identity import Identity
from nextid_sdk.models.procedure import ProcedureState, Signature

from tests.factories import make_kv_payload_response, now_ts
from tests.mocks import FailingSigner, RecordingSigner, WrongAlgorithmSigner


@pytest.fixture
def kv_procedure(mock_kv_client, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv/payload", make_kv_payload_response(patch={"a": 1}))
    return mock_kv_client.procedure(keypair, "twitter", "yeiwb", {"a": 1})


# ── begin ─────────────────────────────────────────────────────────


async def test_new_procedure_is_idle(kv_procedure):
    assert kv_procedure.state is ProcedureState.IDLE
    assert kv_procedure.payload is None
    assert kv_procedure.sign_payload is None
    assert kv_procedure.target == Identity.of("Twitter", "yeiwb")
    assert str(kv_procedure.target) == "twitter:yeiwb"


async def test_begin_awaits_signature(kv_procedure, mock_transport):
    payload = await kv_procedure.begin()

    assert kv_procedure.state is ProcedureState.AWAITING_SIGNATURE
    assert payload.uuid == "00000000-0000-0000-0000-0000000000aa"
    assert kv_procedure.sign_payload == payload.sign_payload
    assert not payload.is_expired()
    assert len(mock_transport.calls_to("POST", "v1/kv/payload")) == 1


async def test_begin_failure_leaves_state(mock_kv_client, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv/payload", NetworkError("connection refused"))
    procedure = mock_kv_client.procedure(keypair, "twitter", "yeiwb", {})

    with pytest.raises(NetworkError):
        await procedure.begin()
    assert procedure.state is ProcedureState.IDLE


async def test_begin_malformed_response(mock_kv_client, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv/payload", {"uuid": "x"})
    procedure = mock_kv_client.procedure(keypair, "twitter", "yeiwb", {})
    with pytest.raises(ParsingError):
        await procedure.begin()
    assert procedure.state is ProcedureState.IDLE


async def test_begin_again_replaces_payload(kv_procedure, mock_transport, keypair):
    mock_transport.routes[("POST", "v1/kv/payload")] = [
        make_kv_payload_response(uuid="first"),
        make_kv_payload_response(uuid="second"),
    ]
    await kv_procedure.begin()
    kv_procedure.sign(keypair)

    payload = await kv_procedure.begin()

    assert payload.uuid == "second"
    assert kv_procedure.signature is None
    assert kv_procedure.state is ProcedureState.AWAITING_SIGNATURE


# ── sign ──────────────────────────────────────────────────────────


async def test_sign_before_begin(kv_procedure, keypair):
    with pytest.raises(ProcedureStateError):
        kv_procedure.sign(keypair)
    assert kv_procedure.state is ProcedureState.IDLE


async def test_sign_signs_the_server_payload(kv_procedure, keypair):
    await kv_procedure.begin()
    signer = RecordingSigner(keypair)

    signature = kv_procedure.sign(signer)

    assert signer.sign_calls == [kv_procedure.sign_payload]
    assert len(signature.raw) == 65
    assert kv_procedure.signature == signature
    assert kv_procedure.state is ProcedureState.AWAITING_SIGNATURE


async def test_signer_failure_rejects(kv_procedure):
    await kv_procedure.begin()
    with pytest.raises(SigningError):
        kv_procedure.sign(FailingSigner())
    assert kv_procedure.state is ProcedureState.REJECTED


async def test_signer_value_error_is_wrapped(kv_procedure):
    await kv_procedure.begin()
    with pytest.raises(SigningError):
        kv_procedure.sign(FailingSigner(ValueError("bad nonce")))
    assert kv_procedure.state is ProcedureState.REJECTED


@pytest.mark.parametrize("error", [RuntimeError("HID device gone"), OSError("bridge closed")])
async def test_signer_device_error_is_wrapped(kv_procedure, error):
    await kv_procedure.begin()
    with pytest.raises(SigningError) as exc_info:
        kv_procedure.sign(FailingSigner(error))
    assert exc_info.value.__cause__ is error
    assert kv_procedure.state is ProcedureState.REJECTED
    assert kv_procedure.signature is None


async def test_wrong_algorithm_rejects_without_signing(kv_procedure):
    await kv_procedure.begin()
    signer = WrongAlgorithmSigner()
    with pytest.raises(SigningError):
        kv_procedure.sign(signer)
    assert signer.sign_calls == []
    assert kv_procedure.state is ProcedureState.REJECTED


async def test_signature_from_other_key_rejects(kv_procedure, other_keypair):
    await kv_procedure.begin()
    with pytest.raises(SigningError):
        kv_procedure.sign(other_keypair)
    assert kv_procedure.state is ProcedureState.REJECTED


async def test_attach_external_signature(kv_procedure, keypair):
    await kv_procedure.begin()
    raw = keypair.personal_sign(kv_procedure.sign_payload)

    kv_procedure.attach_signature(Signature.from_base64(Signature(raw).base64()))

    assert kv_procedure.signature.raw == raw


async def test_rejected_procedure_can_restart(kv_procedure, keypair):
    await kv_procedure.begin()
    with pytest.raises(SigningError):
        kv_procedure.sign(FailingSigner())

    await kv_procedure.begin()
    kv_procedure.sign(keypair)
    assert kv_procedure.state is ProcedureState.AWAITING_SIGNATURE


# ── submit ────────────────────────────────────────────────────────


async def test_submit_before_begin(kv_procedure, mock_transport):
    with pytest.raises(ProcedureStateError):
        await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.IDLE
    assert mock_transport.calls_to("POST", "v1/kv") == []


async def test_submit_before_sign_never_confirms(kv_procedure, mock_transport):
    await kv_procedure.begin()
    with pytest.raises(ProcedureStateError):
        await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.AWAITING_SIGNATURE
    assert mock_transport.calls_to("POST", "v1/kv") == []


async def test_submit_confirms(kv_procedure, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv", {})
    await kv_procedure.begin()
    kv_procedure.sign(keypair)

    result = await kv_procedure.submit()

    assert kv_procedure.state is ProcedureState.CONFIRMED
    assert result.success
    assert result.uuid == kv_procedure.payload.uuid
    assert result.confirmed_at.endswith("Z")


async def test_confirmed_procedure_is_single_use(kv_procedure, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv", {})
    await kv_procedure.begin()
    kv_procedure.sign(keypair)
    await kv_procedure.submit()

    with pytest.raises(ProcedureStateError):
        await kv_procedure.submit()
    with pytest.raises(ProcedureStateError):
        await kv_procedure.begin()
    with pytest.raises(ProcedureStateError):
        kv_procedure.sign(keypair)
    assert len(mock_transport.calls_to("POST", "v1/kv")) == 1
    assert kv_procedure.state is ProcedureState.CONFIRMED


async def test_expired_payload_is_rejected_locally(mock_kv_client, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv/payload", make_kv_payload_response(created_at=now_ts() - 7200))
    procedure = mock_kv_client.procedure(keypair, "twitter", "yeiwb", {})
    await procedure.begin()
    procedure.sign(keypair)

    with pytest.raises(PayloadExpired) as exc_info:
        await procedure.submit()

    assert isinstance(exc_info.value, ServerRejected)
    assert procedure.state is ProcedureState.REJECTED
    assert mock_transport.calls_to("POST", "v1/kv") == []


async def test_short_ttl_expires(kv_endpoint, mock_transport, keypair):
    client = KVServiceClient(kv_endpoint, mock_transport, payload_ttl=60)
    mock_transport.add("POST", "v1/kv/payload", make_kv_payload_response(created_at=now_ts() - 61))
    procedure = client.procedure(keypair, "twitter", "yeiwb", {})
    await procedure.begin()
    procedure.sign(keypair)

    with pytest.raises(PayloadExpired):
        await procedure.submit()


async def test_network_error_allows_resubmit(kv_procedure, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv", NetworkError("timed out"), {})
    await kv_procedure.begin()
    kv_procedure.sign(keypair)

    with pytest.raises(NetworkError):
        await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.AWAITING_SIGNATURE
    assert kv_procedure.signature is not None

    await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.CONFIRMED


async def test_server_rejection_is_terminal(kv_procedure, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv", ServerRejected("HTTP 400: bad signature", status=400))
    await kv_procedure.begin()
    kv_procedure.sign(keypair)

    with pytest.raises(ServerRejected):
        await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.REJECTED
    with pytest.raises(ProcedureStateError):
        await kv_procedure.submit()


async def test_malformed_upload_reply_rejects(kv_procedure, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv", ParsingError("response is not JSON"))
    await kv_procedure.begin()
    kv_procedure.sign(keypair)

    with pytest.raises(ParsingError):
        await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.REJECTED

    mock_transport.routes[("POST", "v1/kv")] = [{}]
    await kv_procedure.begin()
    kv_procedure.sign(keypair)
    await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.CONFIRMED


async def test_cancelled_submit_rejects(kv_procedure, mock_transport, keypair):
    mock_transport.add("POST", "v1/kv", asyncio.CancelledError())
    await kv_procedure.begin()
    kv_procedure.sign(keypair)

    with pytest.raises(asyncio.CancelledError):
        await kv_procedure.submit()
    assert kv_procedure.state is ProcedureState.REJECTED

    await kv_procedure.begin()
    assert kv_procedure.state is ProcedureState.AWAITING_SIGNATURE
