from __future__ import annotations

import re

from ..pipeline.mediator import Mediator
from ..pipeline.validation import (
    Rule,
    RuleSet,
    greater_than,
    greater_than_or_equal,
    has_value,
    is_blank,
    length,
    less_than_or_equal,
    matches,
    max_length,
    min_length,
    must,
    not_empty,
)
from ..security.principal import UserRole
from . import requests as rq

NAME_PATTERN = r"^[a-zA-Zа-яА-Я\s\-']+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
SPECIAL_CHAR_PATTERN = r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?]"

USER_SORT_FIELDS = ("email", "firstname", "lastname", "createdat")


def is_valid_email(email: str | None) -> bool:
    v = str(email or "")
    return len(v) <= 100 and re.search(EMAIL_PATTERN, v) is not None


def name_rules(attr: str, label: str, *, optional: bool = False) -> list[Rule]:
    when = has_value(attr) if optional else None
    rules = [
        length(attr, 2, 50, f"{label} must be between 2 and 50 characters", when=when),
        matches(attr, NAME_PATTERN, f"{label} can only contain letters, spaces, hyphens and apostrophes", when=when),
    ]
    if optional:
        return [not_empty(attr, f"{label} cannot be empty", when=when), *rules]
    return [not_empty(attr, f"{label} is required"), *rules]


def email_rules(attr: str = "email", *, optional: bool = False) -> list[Rule]:
    when = has_value(attr) if optional else None
    rules = [
        matches(attr, EMAIL_PATTERN, "Invalid email format", when=when),
        max_length(attr, 100, "Email must not exceed 100 characters", when=when),
    ]
    if optional:
        return [not_empty(attr, "Email cannot be empty", when=when), *rules]
    return [not_empty(attr, "Email is required"), *rules]


def password_rules(attr: str, label: str = "Password") -> list[Rule]:
    return [
        not_empty(attr, f"{label} is required"),
        min_length(attr, 8, f"{label} must be at least 8 characters"),
        max_length(attr, 100, f"{label} must not exceed 100 characters"),
        matches(attr, r"[A-Z]", f"{label} must contain at least one uppercase letter"),
        matches(attr, r"[a-z]", f"{label} must contain at least one lowercase letter"),
        matches(attr, r"\d", f"{label} must contain at least one number"),
        matches(attr, SPECIAL_CHAR_PATTERN, f"{label} must contain at least one special character"),
    ]


register_user = RuleSet(
    [
        *name_rules("first_name", "First name"),
        *name_rules("last_name", "Last name"),
        *email_rules(),
        *password_rules("password"),
    ]
)

forgot_password = RuleSet(email_rules())

reset_password = RuleSet(
    [
        not_empty("token", "Reset token is required"),
        min_length("token", 10, "Invalid reset token"),
        *password_rules("new_password", "New password"),
    ]
)

update_user = RuleSet(
    [
        *name_rules("first_name", "First name", optional=True),
        *name_rules("last_name", "Last name", optional=True),
        *email_rules(optional=True),
    ]
)

update_user_role = RuleSet(
    [
        not_empty("role", "Role is required"),
        must(
            "role",
            lambda r: UserRole.parse(r.role) is not None,
            "Invalid role specified. Valid roles are: User, Admin",
            when=lambda r: not is_blank(r.role),
        ),
    ]
)

get_users = RuleSet(
    [
        greater_than("page", 0, "Page must be greater than 0"),
        less_than_or_equal("page", 1000, "Page must be less than or equal to 1000"),
        greater_than("page_size", 0, "Page size must be greater than 0"),
        less_than_or_equal("page_size", 100, "Page size must be less than or equal to 100"),
        max_length("search", 50, "Search term must not exceed 50 characters"),
        must(
            "role",
            lambda r: UserRole.parse(r.role) is not None,
            "Invalid role specified",
            when=lambda r: not is_blank(r.role),
        ),
        must(
            "sort_by",
            lambda r: str(r.sort_by).strip().lower() in USER_SORT_FIELDS,
            "Invalid sort field",
            when=lambda r: not is_blank(r.sort_by),
        ),
    ]
)

bulk_update_user_status = RuleSet(
    [
        not_empty("user_ids", "At least one user ID is required"),
        must("user_ids", lambda r: len(r.user_ids) <= 100, "Cannot update more than 100 users at once"),
    ]
)

generate_random_password = RuleSet(
    [
        greater_than_or_equal("length", 8, "Password length must be at least 8 characters"),
        less_than_or_equal("length", 128, "Password length must not exceed 128 characters"),
    ]
)


def register_validators(mediator: Mediator) -> None:
    mediator.add_validator(rq.RegisterUser, register_user)
    mediator.add_validator(rq.ForgotPassword, forgot_password)
    mediator.add_validator(rq.ResetPassword, reset_password)
    mediator.add_validator(rq.UpdateUser, update_user)
    mediator.add_validator(rq.UpdateUserRole, update_user_role)
    mediator.add_validator(rq.GetUsers, get_users)
    mediator.add_validator(rq.BulkUpdateUserStatus, bulk_update_user_status)
    mediator.add_validator(rq.GenerateRandomPassword, generate_random_password)
