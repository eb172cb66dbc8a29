"""Pydantic schemas for state updates arriving over HTTP.

Value fields are typed ``Any`` so pydantic does not coerce them (``true`` to
1.0, ``"yes"`` to True). Presence, type and range checks happen in the state
updater so HTTP and MQTT share one set of rules.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LevelUpdate(BaseModel):
    bin_id: str | None = Field(default=None, validation_alias=AliasChoices("bin_id", "binId"))
    level_percent: Any = Field(
        default=None, validation_alias=AliasChoices("level_percent", "levelPercent")
    )
    timestamp: str | None = None


class LevelUpdateOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bin_id: str = Field(serialization_alias="binId")
    level_percent: float = Field(serialization_alias="levelPercent")
    status: str


class StatusUpdate(BaseModel):
    status: str | None = None
    client_id_mqtt: str | None = Field(
        default=None,
        validation_alias=AliasChoices("client_id_mqtt", "clientIdMqtt", "correlationId"),
    )
    timestamp: str | None = None


class ColorUpdate(BaseModel):
    classification: Any = None
    confidence: Any = None
    rgb: Any = None
    timestamp: str | None = None


class ProximityUpdate(BaseModel):
    distance_cm: Any = Field(
        default=None, validation_alias=AliasChoices("distance_cm", "distanceCm")
    )
    trigger: Any = None
    timestamp: str | None = None
