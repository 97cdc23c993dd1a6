"""User directory lookups and account creation."""
from __future__ import annotations

import logging
from typing import Iterable, Mapping

from django.conf import settings
from django.contrib.auth.tokens import default_token_generator
from django.db import DatabaseError, transaction
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode

from hallmark.exceptions import DependencyFailure, ValidationError
from hallmark.ids import try_canonical_id
from notifications.emails import EmailKind, send_templated_email

from .models import User

logger = logging.getLogger(__name__)


def get_user(user_id) -> User | None:
    canonical = try_canonical_id(user_id)
    if canonical is None:
        return None
    return User.objects.filter(pk=canonical).first()


def get_user_by_email(email: str) -> User | None:
    if not email:
        return None
    return User.objects.filter(email=email.strip().lower()).first()


def get_user_by_identifier(identifier: str) -> User | None:
    if not identifier:
        return None
    return User.objects.filter(identifier=identifier.strip()).first()


def users_by_ids(user_ids: Iterable) -> Mapping[str, User]:
    """Batch lookup keyed by canonical id; unknown or malformed ids are skipped."""
    canonical = {try_canonical_id(value) for value in user_ids}
    canonical.discard(None)
    if not canonical:
        return {}
    return {str(user.pk): user for user in User.objects.filter(pk__in=canonical)}


def display_name(user: User | None, fallback: str) -> str:
    if user is None:
        return fallback
    return user.full_name or user.email or fallback


def build_verification_url(user: User) -> str:
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    return f"{settings.APP_URL}/auth/verify-email?uid={uid}&token={token}"


def create_user(
    *,
    email: str,
    role: str,
    first_name: str,
    last_name: str,
    identifier: str = "",
    level: int | None = None,
) -> User:
    """Create an account and send its welcome email.

    The account is removed again when the welcome email cannot be delivered,
    since the user would have no way to set a password.
    """
    email = email.strip().lower()
    if User.objects.filter(email=email).exists():
        raise ValidationError("User with this email already exists")

    user = User(
        email=email,
        username=email,
        role=role,
        first_name=first_name,
        last_name=last_name,
        identifier=identifier if role in (User.Role.STUDENT, User.Role.LECTURER) else "",
        level=level if role == User.Role.STUDENT else None,
        is_password_set=False,
    )
    user.set_unusable_password()
    with transaction.atomic():
        user.save()

    sent = send_templated_email(
        user.email,
        EmailKind.WELCOME,
        {"user_name": user.full_name, "verification_url": build_verification_url(user)},
    )
    if not sent:
        logger.warning("Welcome email failed for %s, removing the new account", user.email)
        try:
            user.delete()
        except DatabaseError:
            logger.exception("Could not remove account %s after welcome email failure", user.pk)
        raise DependencyFailure(
            "Failed to send welcome email. Please check email configuration and try again."
        )
    return user
