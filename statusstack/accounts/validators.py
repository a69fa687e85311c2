"""
Custom validators for account signup
"""
import re
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.utils.translation import gettext as _


class CustomPasswordValidator:
    """
    Validate that the password meets security requirements:
    - At least 8 characters
    - Contains uppercase and lowercase letters
    - Contains at least one digit
    - Contains at least one special character
    """

    def validate(self, password, user=None):
        errors = []
        if len(password) < 8:
            errors.append(ValidationError(
                _("Password must be at least 8 characters long."),
                code='password_too_short',
            ))

        if not re.search(r'[A-Z]', password):
            errors.append(ValidationError(
                _("Password must contain at least one uppercase letter."),
                code='password_no_upper',
            ))

        if not re.search(r'[a-z]', password):
            errors.append(ValidationError(
                _("Password must contain at least one lowercase letter."),
                code='password_no_lower',
            ))

        if not re.search(r'\d', password):
            errors.append(ValidationError(
                _("Password must contain at least one digit."),
                code='password_no_digit',
            ))

        if not re.search(r'''[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?`~]''', password):
            errors.append(ValidationError(
                _("Password must contain at least one special character."),
                code='password_no_special',
            ))

        # Report every unmet rule at once
        if errors:
            raise ValidationError(errors)

    def get_help_text(self):
        return _(
            "Your password must contain at least 8 characters, including uppercase "
            "and lowercase letters, numbers, and special characters."
        )


def normalize_email(email):
    """Lower-case and validate an email address, raising ValidationError."""
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError(_("Email is required"), code="required")
    validate_email(email)
    return email
