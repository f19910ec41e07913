from tokenapi.models.user import Role, User, user_roles

__all__ = ["Role", "User", "user_roles"]
