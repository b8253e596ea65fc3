from hiredesk_auth.models.user import User

__all__ = ["User"]
