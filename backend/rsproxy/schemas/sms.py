"""SMS Portal Schemas — request bodies for the portal-variant convenience endpoints.

Invariants:
    - message/recipients presence is checked by SmsPortalService, not here,
      so the 400 texts match the relay contract
    - Recipient dicts from the portal UI keep their snake_case keys
      (cellphone_number); options use camelCase (scheduledFor, testMode)
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SmsRecipient(BaseModel):
    """One staff/contact row; either number key is accepted."""
    model_config = ConfigDict(extra="ignore")

    cellphone_number: str | None = None
    phone: str | None = None
    name: str | None = None

    @property
    def number(self) -> str | None:
        return self.cellphone_number or self.phone


class SmsSendOptions(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )

    scheduled_for: str | None = None
    reference: str | None = None
    test_mode: bool = False


class SmsSendRequest(BaseModel):
    """Inbound POST /api/sms/send body: bulk `recipients` or one `destination`."""
    model_config = ConfigDict(extra="ignore")

    message: str | None = None
    recipients: list[SmsRecipient] = Field(default_factory=list)
    destination: str | None = None
    options: SmsSendOptions = Field(default_factory=SmsSendOptions)
