# This project was developed with assistance from AI tools.
"""Authentication and authorization schemas."""

from pydantic import BaseModel, ConfigDict, Field
from zakat_db.enums import UserRole


class DataScope(BaseModel):
    """Data visibility rules injected by RBAC middleware."""

    own_data_only: bool = False
    user_id: str | None = None
    masjid_id: int | None = None
    full_pipeline: bool = False


class UserContext(BaseModel):
    """Injected by auth middleware into every authenticated request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str
    masjid_id: int | None = None
    data_scope: DataScope = Field(default_factory=DataScope)

    @property
    def is_staff(self) -> bool:
        return self.role in UserRole.staff_roles()

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN


class TokenPayload(BaseModel):
    """Decoded JWT token claims from Keycloak."""

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    masjid_id: int | None = None
    realm_access: dict = Field(default_factory=dict)
