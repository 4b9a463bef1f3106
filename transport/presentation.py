"""Builds a verifiable presentation through an external presenter and sends it."""

import json
import logging
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict

from common.exceptions import ChannelError, PresentationError
from common.utils import unix_timestamp
from transport.channel import Channel
from transport.sequencer import TransmissionSequencer

logger = logging.getLogger(__name__)


class PresentationRequest(BaseModel):
    """Fields of the verifier's request object that bind the presentation."""
    model_config = ConfigDict(extra="allow")

    client_id: str
    nonce: str


class Presenter(Protocol):
    """
    Presentation-building capability held by the wallet's key material owner.
    Performs selective disclosure and signs the key-binding payload.
    """

    async def present(
        self,
        credential: str,
        presentation_frame: Dict[str, Any],
        key_binding: Dict[str, Any],
    ) -> str:
        ...


def build_key_binding(request: PresentationRequest, issued_at: Optional[int] = None) -> Dict[str, Any]:
    """Key-binding JWT payload for a request."""
    return {
        "iat": issued_at if issued_at is not None else unix_timestamp(),
        "aud": request.client_id,
        "nonce": request.nonce,
    }


def build_vp_token_message(presentation: str) -> str:
    """Wrap a presentation in the vp_token message sent over the link."""
    return json.dumps({"type": "vp_token", "value": {"0": presentation}}, separators=(",", ":"))


class PresentationSender:
    """
    Present a stored credential to a connected verifier.

    Usage:
        sender = PresentationSender(presenter, TransmissionSequencer())
        await sender.present(channel, credential, frame, {"client_id": ..., "nonce": ...})
    """

    def __init__(self, presenter: Presenter, sequencer: Optional[TransmissionSequencer] = None):
        self.presenter = presenter
        self.sequencer = sequencer or TransmissionSequencer()

    async def present(
        self,
        channel: Optional[Channel],
        credential: str,
        presentation_frame: Dict[str, Any],
        request: Any,
    ) -> None:
        """
        Build the presentation and transmit it.

        Args:
            channel: Connected channel handle
            credential: Stored credential (e.g. SD-JWT) to present
            presentation_frame: Claims to disclose, as the presenter expects it
            request: Request object (mapping or PresentationRequest) with client_id and nonce

        Raises:
            ChannelError: If no channel is given
            PresentationError: If building or sending the presentation fails
        """
        if channel is None:
            raise ChannelError("No device connected", operation="present")

        try:
            if not isinstance(request, PresentationRequest):
                request = PresentationRequest.model_validate(request)

            presentation = await self.presenter.present(
                credential,
                presentation_frame,
                build_key_binding(request),
            )
            await self.sequencer.send(channel, build_vp_token_message(presentation))
        except Exception as e:
            raise PresentationError(f"Failed to present credential: {e}") from e

        logger.info(f"Presented credential to {request.client_id}")
