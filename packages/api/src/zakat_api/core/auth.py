# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

Kept apart from ``middleware/auth.py`` so services and tests can build
scopes without pulling in FastAPI/Starlette.
"""

from zakat_db.enums import UserRole

from ..schemas.auth import DataScope


def build_data_scope(role: UserRole, user_id: str, masjid_id: int | None = None) -> DataScope:
    """Build data scope rules based on the user's role."""
    if role == UserRole.APPLICANT:
        return DataScope(own_data_only=True, user_id=user_id)
    if role == UserRole.ZAKAT_ADMIN:
        return DataScope(user_id=user_id, masjid_id=masjid_id)
    if role == UserRole.SUPER_ADMIN:
        return DataScope(full_pipeline=True)
    # unknown -- minimal access
    return DataScope()
