from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class StoredFile(BaseModel):
    """One persisted upload and the public URL it is served under."""

    model_config = ConfigDict(frozen=True)

    # Client-supplied name; kept for the audit entry, never sent back
    original_name: str = Field(default="", exclude=True)
    filename: str
    path: str
    url: str


class UploadResponse(BaseModel):
    """Body returned for a successful upload batch."""

    message: str = "Upload successful!"
    files: list[StoredFile]
