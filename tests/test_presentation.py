"""Tests for presentation building and sending."""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from common.exceptions import ChannelError, PresentationError
from transport.presentation import (
    PresentationRequest,
    PresentationSender,
    build_key_binding,
    build_vp_token_message,
)
from transport.channel import LoopbackChannel
from transport.receiver import PayloadSubscription
from transport.sequencer import TransmissionSequencer


@pytest.fixture
def presenter():
    presenter = Mock()
    presenter.present = AsyncMock(return_value="issuer.jwt~disclosure~kb.jwt")
    return presenter


@pytest.fixture
def sequencer():
    return TransmissionSequencer(max_chunk_size=16, pacing_interval=0)


REQUEST = {"client_id": "x509_san_dns:verifier.example", "nonce": "n-0S6_WzA2Mj"}


class TestKeyBinding:
    """Test key-binding payload construction."""

    def test_binds_audience_and_nonce(self):
        request = PresentationRequest(**REQUEST)

        key_binding = build_key_binding(request, issued_at=1700000000)

        assert key_binding == {
            "iat": 1700000000,
            "aud": "x509_san_dns:verifier.example",
            "nonce": "n-0S6_WzA2Mj",
        }

    def test_defaults_issued_at_to_now(self):
        key_binding = build_key_binding(PresentationRequest(**REQUEST))

        assert isinstance(key_binding["iat"], int)
        assert key_binding["iat"] > 0

    def test_request_allows_extra_fields(self):
        request = PresentationRequest(**REQUEST, response_mode="direct_post")

        assert request.nonce == REQUEST["nonce"]


class TestVpTokenMessage:
    def test_message_shape(self):
        message = build_vp_token_message("abc~def~")

        assert message == '{"type":"vp_token","value":{"0":"abc~def~"}}'
        assert json.loads(message)["value"]["0"] == "abc~def~"


class TestPresentationSender:
    """Test PresentationSender.present."""

    @pytest.mark.asyncio
    async def test_presents_and_transmits(self, channel, presenter, sequencer):
        received = Mock()
        PayloadSubscription(channel, received)
        sender = PresentationSender(presenter, sequencer)
        frame = {"name": True}

        await sender.present(channel, "stored~credential~", frame, REQUEST)

        credential, passed_frame, key_binding = presenter.present.await_args[0]
        assert credential == "stored~credential~"
        assert passed_frame == frame
        assert key_binding["aud"] == REQUEST["client_id"]
        assert key_binding["nonce"] == REQUEST["nonce"]

        error, payload = received.call_args[0]
        assert error is None
        assert json.loads(payload) == {
            "type": "vp_token",
            "value": {"0": "issuer.jwt~disclosure~kb.jwt"},
        }

    @pytest.mark.asyncio
    async def test_no_channel(self, presenter, sequencer):
        sender = PresentationSender(presenter, sequencer)

        with pytest.raises(ChannelError, match="No device connected"):
            await sender.present(None, "cred", {}, REQUEST)

        presenter.present.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_presenter_failure_is_wrapped(self, channel, presenter, sequencer):
        presenter.present.side_effect = RuntimeError("key unavailable")
        sender = PresentationSender(presenter, sequencer)

        with pytest.raises(PresentationError, match="key unavailable"):
            await sender.present(channel, "cred", {}, REQUEST)

        assert channel.written == []

    @pytest.mark.asyncio
    async def test_invalid_request_is_wrapped(self, channel, presenter, sequencer):
        sender = PresentationSender(presenter, sequencer)

        with pytest.raises(PresentationError):
            await sender.present(channel, "cred", {}, {"client_id": "verifier"})

    @pytest.mark.asyncio
    async def test_send_failure_is_wrapped(self, presenter, sequencer):
        channel = LoopbackChannel(fail_on_write=1)
        sender = PresentationSender(presenter, sequencer)

        with pytest.raises(PresentationError, match="Failed to send chunk 1/"):
            await sender.present(channel, "cred", {}, REQUEST)
