from dataclasses import dataclass

ROLES = ('student', 'staff', 'admin')
DEFAULT_ROLE = 'student'
GUEST_USER_ID = 'guest'


@dataclass(frozen=True)
class UserContext:
    id: str = GUEST_USER_ID
    role: str = DEFAULT_ROLE

    @classmethod
    def create(cls, user_id=None, role=None):
        """Build a context from untrusted values, normalising the role"""
        normalized = str(role).strip().lower() if role is not None else DEFAULT_ROLE
        if normalized not in ROLES:
            normalized = DEFAULT_ROLE
        user_id = str(user_id).strip() if user_id is not None else ''
        return cls(id=user_id or GUEST_USER_ID, role=normalized)

    @property
    def role_label(self):
        return f"Role: {self.role.capitalize()}"

    def to_dict(self):
        return {'id': self.id, 'role': self.role, 'role_label': self.role_label}
