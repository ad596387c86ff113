"""Request bodies accepted by the HTTP surface."""

from pydantic import BaseModel

from ordo.domain.generation import OrganizingStyle


class SignUpRequest(BaseModel):
    """Sign-up form fields."""

    email: str
    name: str
    password: str


class SignInRequest(BaseModel):
    """Sign-in form fields."""

    email: str
    password: str


class CameraPermissionRequest(BaseModel):
    """Camera permission decision reported by the browser."""

    granted: bool


class StyleRequest(BaseModel):
    style: OrganizingStyle


class InspirationRequest(BaseModel):
    prompt: str


class SaveSpaceRequest(BaseModel):
    """Optional name for a new saved space."""

    name: str | None = None


class RenameSpaceRequest(BaseModel):
    name: str
