import pytest

from conftest import ALICE, ScriptedIdentity, make_draft
from urban_node.urban_runtime import codec
from urban_node.urban_runtime.disclosure import (
    DisclosureParams,
    DisclosureSession,
    DisclosureState,
    build_challenge,
    generate_public_key,
)
from urban_node.urban_runtime.errors import DecodeError, ProviderError, SignatureDeclinedError
from urban_node.urban_runtime.identity import PresignedIdentity, WalletIdentity


def _params():
    return DisclosureParams(
        public_key="0xabc",
        contract_address="0x00000000000000000000000000000000000c0ffe",
        chain_id=11155111,
        start_timestamp=1_700_000_000,
        duration_days=30,
    )


def test_challenge_has_fixed_field_order_and_labels():
    assert build_challenge(_params()) == (
        "publickey:0xabc\n"
        "contractAddresses:0x00000000000000000000000000000000000c0ffe\n"
        "contractsChainId:11155111\n"
        "startTimestamp:1700000000\n"
        "durationDays:30"
    )


def test_fresh_params_generate_public_key_material():
    params = DisclosureParams.fresh("0xdir", 1, clock=lambda: 1234.9)
    assert params.public_key.startswith("0x")
    assert len(params.public_key) == 2 + 2000
    int(params.public_key[2:], 16)
    assert params.start_timestamp == 1234
    assert params.duration_days == 30
    assert generate_public_key() != generate_public_key()


@pytest.mark.asyncio
async def test_successful_signature_reveals_votes():
    identity = ScriptedIdentity()
    session = DisclosureSession(identity=identity, params=_params())

    value = await session.toggle(codec.encode(42))

    assert value == 42.0
    assert session.state == DisclosureState.REVEALED
    assert identity.prompts == [build_challenge(_params())]


@pytest.mark.asyncio
async def test_toggle_while_revealed_collapses_without_prompt():
    identity = ScriptedIdentity()
    session = DisclosureSession(identity=identity, params=_params())
    await session.toggle(codec.encode(5))

    assert await session.toggle(codec.encode(5)) is None
    assert session.state == DisclosureState.IDLE
    assert session.value is None
    assert len(identity.prompts) == 1


@pytest.mark.asyncio
async def test_declined_signature_fails_and_repeat_prompts_again():
    identity = ScriptedIdentity(decline=True)
    session = DisclosureSession(identity=identity, params=_params())

    assert await session.toggle(codec.encode(42)) is None
    assert session.state == DisclosureState.FAILED
    assert session.value is None
    assert isinstance(session.error, SignatureDeclinedError)

    identity.decline = False
    assert await session.toggle(codec.encode(42)) == 42.0
    assert len(identity.prompts) == 2
    assert session.state == DisclosureState.REVEALED


@pytest.mark.asyncio
async def test_provider_crash_is_reported_as_provider_error():
    class Broken(ScriptedIdentity):
        async def sign(self, message):
            raise ConnectionError("rpc down")

    session = DisclosureSession(identity=Broken(), params=_params())
    with pytest.raises(ProviderError):
        await session.reveal(codec.encode(1))
    assert session.state == DisclosureState.FAILED


@pytest.mark.asyncio
async def test_undecodable_token_fails_after_signing():
    identity = ScriptedIdentity()
    session = DisclosureSession(identity=identity, params=_params())

    with pytest.raises(DecodeError):
        await session.reveal("FHE-!!!")
    assert session.state == DisclosureState.FAILED
    assert len(identity.prompts) == 1


@pytest.mark.asyncio
async def test_any_signature_unlocks_decoding():
    session = DisclosureSession(identity=PresignedIdentity(ALICE, "0xdeadbeef"), params=_params())
    assert await session.reveal(codec.encode(9)) == 9.0


@pytest.mark.asyncio
async def test_presigned_identity_without_signature_declines():
    with pytest.raises(SignatureDeclinedError):
        await PresignedIdentity(ALICE, None).sign("msg")
    with pytest.raises(ProviderError):
        await PresignedIdentity(None, "0xsig").sign("msg")


@pytest.mark.asyncio
async def test_wallet_identity_signs_challenge():
    from nacl.signing import VerifyKey

    wallet = WalletIdentity()
    restored = WalletIdentity(wallet.secret_key_hex)
    assert restored.address == wallet.address
    assert wallet.address.startswith("0x") and len(wallet.address) == 42

    message = build_challenge(_params())
    sig = await wallet.sign(message)
    VerifyKey(bytes.fromhex(wallet.verify_key_hex)).verify(message.encode("utf-8"), bytes.fromhex(sig))


@pytest.mark.asyncio
async def test_end_to_end_create_and_disclose(runtime):
    pid = (await runtime.submit(make_draft(vote_count=42), ALICE)).id
    stored = await runtime.repository.get(pid)
    assert stored.encoded_votes.startswith("FHE-")

    assert await runtime.reveal(pid, ScriptedIdentity()) == 42.0
