# server/models/messages.py
"""Pydantic schemas for messages received from clients."""

import logging
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from models.entities import Vector3

logger = logging.getLogger(__name__)


class Vector3Payload(BaseModel):
    """A 3D vector as sent over the wire. Only finite coordinates are accepted."""

    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
    z: float

    def to_entity(self) -> Vector3:
        return Vector3(x=self.x, y=self.y, z=self.z)


class UpdatePositionMessage(BaseModel):
    """Periodic movement report, sent roughly every 100ms."""

    type: Literal["updatePosition"]
    position: Vector3Payload
    velocity: Vector3Payload
    state: Literal["gliding", "climbing", "idle"]


class CollectBerryMessage(BaseModel):
    """Request to collect a berry in a given chunk."""

    type: Literal["collectBerry"]
    berryId: str = Field(min_length=1)
    chunkId: str = Field(min_length=1)


class InitiateKissMessage(BaseModel):
    """Kiss request to relay to another player."""

    type: Literal["initiateKiss"]
    targetPlayerId: str = Field(min_length=1)


class AcceptKissMessage(BaseModel):
    """Acceptance of a kiss request received from another player."""

    type: Literal["acceptKiss"]
    fromPlayerId: str = Field(min_length=1)


class PlayerGroundedMessage(BaseModel):
    """The client reports its squirrel touched the ground."""

    type: Literal["playerGrounded"]


ClientMessage = Annotated[
    Union[
        UpdatePositionMessage,
        CollectBerryMessage,
        InitiateKissMessage,
        AcceptKissMessage,
        PlayerGroundedMessage,
    ],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data) -> Optional[BaseModel]:
    """Validate a raw client message, returning None when it should be dropped."""
    try:
        return _client_message_adapter.validate_python(data)
    except ValidationError as e:
        logger.debug("Dropping malformed message %r: %s", data, e)
        return None
