"""Request bodies accepted by the HTTP layer."""
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from .errors import ValidationError


class ClientCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class ReminderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: Optional[Union[int, str]] = Field(
        default=None, validation_alias=AliasChoices('clientId', 'client_id')
    )
    fire_time: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('fireTime', 'datetimeISO', 'fire_time')
    )
    message: Optional[str] = None
    repeat: Optional[str] = None


class RunNowRequest(BaseModel):
    reminder_id: Optional[Union[int, str]] = Field(
        default=None, validation_alias=AliasChoices('reminderId', 'reminder_id')
    )


def parse_body(schema, data):
    """Validates a JSON body against `schema`, raising the API's ValidationError."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(data)
    except SchemaError as e:
        fields = ", ".join(".".join(str(part) for part in err['loc']) for err in e.errors())
        raise ValidationError(f"Invalid value for {fields}")
