from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field

class CallStatus(str, Enum):
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    NOT_ANSWERED = "Not Answered"

class Call(BaseModel):
    """Call record as stored by the backend."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    phone_number: str = Field(alias="phoneNumber")
    from_number: Optional[str] = Field(default=None, alias="fromNumber")
    base_script: str = Field(alias="baseScript")
    status: CallStatus
    responses_collected: Optional[str] = Field(default=None, alias="responsesCollected")
    bland_call_id: Optional[str] = Field(default=None, alias="blandCallId")
    call_duration: Optional[int] = Field(default=None, alias="callDuration")
    recording_url: Optional[str] = Field(default=None, alias="recordingUrl")
    issues: Optional[str] = None
    pathway: Optional[str] = None
    tags: Optional[str] = None
    batch_id: Optional[str] = Field(default=None, alias="batchId")
    transferred_to: Optional[str] = Field(default=None, alias="transferredTo")
    review_status: Optional[str] = Field(default=None, alias="reviewStatus")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

# Wire names of the legacy call-creation fields
LEGACY_FIELDS = {
    "phoneNumber": "legacy_phone_number",
    "fromNumber": "from_number",
    "baseScript": "base_script",
}

@dataclass
class CreateCallRequest:
    phone_number: Optional[str] = None
    task: Optional[str] = None
    voice: Optional[str] = None
    wait_for_greeting: Optional[bool] = None
    record: Optional[bool] = None
    answered_by_enabled: Optional[bool] = None
    noise_cancellation: Optional[bool] = None
    interruption_threshold: Optional[int] = None
    block_interruptions: Optional[bool] = None
    max_duration: Optional[int] = None
    model: Optional[str] = None
    language: Optional[str] = None
    background_track: Optional[str] = None
    endpoint: Optional[str] = None
    voicemail_action: Optional[str] = None
    temperature: Optional[float] = None
    json_mode_enabled: Optional[bool] = None
    # Legacy fields
    legacy_phone_number: Optional[str] = None
    from_number: Optional[str] = None
    base_script: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CreateCallRequest":
        """Build a request from wire-format keys, new and legacy alike."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = LEGACY_FIELDS.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

@dataclass
class CallPayload:
    """Canonical body of POST /calls; every provider-facing field is set."""
    phone_number: str
    task: str
    voice: str = "June"
    wait_for_greeting: bool = False
    record: bool = True
    answered_by_enabled: bool = True
    noise_cancellation: bool = False
    interruption_threshold: int = 100
    block_interruptions: bool = False
    max_duration: int = 12
    model: str = "base"
    language: str = "en"
    background_track: str = "none"
    endpoint: str = "https://api.bland.ai"
    voicemail_action: str = "hangup"
    temperature: float = 0.7
    json_mode_enabled: bool = True
    from_number: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        body = asdict(self)
        from_number = body.pop("from_number")
        if from_number is not None:
            body["fromNumber"] = from_number
        return body

@dataclass
class LoginRequest:
    username: str
    password: str

@dataclass
class AuthResponse:
    access_token: str

@dataclass
class ClearResult:
    message: str
    deleted_count: int

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ClearResult":
        return cls(message=data.get("message", ""), deleted_count=int(data.get("deletedCount", 0)))

@dataclass
class SyncResult:
    message: str
    synced_count: int
    created_count: int
    updated_count: int

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "SyncResult":
        return cls(
            message=data.get("message", ""),
            synced_count=int(data.get("syncedCount", 0)),
            created_count=int(data.get("createdCount", 0)),
            updated_count=int(data.get("updatedCount", 0))
        )
