from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """
    Represents the caller identified by a verified bearer token.
    """

    user_id: str = Field(..., alias="sub")
    name: Optional[str] = None
    email: Optional[str] = None
    role: str = "authenticated"

    model_config = ConfigDict(populate_by_name=True)

    @property
    def reference(self) -> str:
        """Value recorded as approver/uploader on audit fields."""
        return self.email or self.user_id
