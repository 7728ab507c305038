from accessor.authz.models import Permission, Role, RolePermission, UserRole

__all__ = ["Permission", "Role", "RolePermission", "UserRole"]
