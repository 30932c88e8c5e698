"""Team documents access-code schemas."""

from pydantic import BaseModel


class UpdateDocsAccessCodeRequest(BaseModel):
    code: str | None = None


class VerifyDocsAccessCodeRequest(BaseModel):
    code: str | None = None


class DocsAccessCodeVerdict(BaseModel):
    valid: bool
