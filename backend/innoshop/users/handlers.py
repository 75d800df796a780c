from __future__ import annotations

from ..pipeline.mediator import Mediator
from . import requests as rq
from .auth_service import AuthService
from .user_service import UserService


def register_handlers(mediator: Mediator, *, auth: AuthService, users: UserService) -> None:
    """Bind each user-service request type to the service method that handles it."""
    mediator.register(rq.RegisterUser, auth.register)
    mediator.register(rq.Login, auth.login)
    mediator.register(rq.ConfirmEmail, auth.confirm_email)
    mediator.register(rq.ForgotPassword, auth.forgot_password)
    mediator.register(rq.ResetPassword, auth.reset_password)
    mediator.register(rq.RefreshToken, auth.refresh_token)

    mediator.register(rq.GetUserById, users.get_user_by_id)
    mediator.register(rq.GetUserByEmail, users.get_user_by_email)
    mediator.register(rq.UpdateUser, users.update_user)
    mediator.register(rq.DeleteUser, users.delete_user)
    mediator.register(rq.ChangePassword, users.change_password)
    mediator.register(rq.ToggleUserStatus, users.toggle_user_status)
    mediator.register(rq.UpdateUserRole, users.update_user_role)
    mediator.register(rq.GetUsers, users.get_users)
    mediator.register(rq.GetUsersByIds, users.get_users_by_ids)
    mediator.register(rq.GetUsersCount, users.get_users_count)
    mediator.register(rq.GetInactiveUsers, users.get_inactive_users)
    mediator.register(rq.BulkUpdateUserStatus, users.bulk_update_user_status)
    mediator.register(rq.CleanupInactiveUsers, users.cleanup_inactive_users)
    mediator.register(rq.CheckPasswordStrength, users.check_password_strength)
    mediator.register(rq.GenerateRandomPassword, users.generate_random_password)
    mediator.register(rq.GetUserProductsCount, users.get_user_products_count)
    mediator.register(rq.UserExists, users.user_exists)
    mediator.register(rq.IsUserActive, users.is_user_active)
    mediator.register(rq.GetUserName, users.get_user_name)
