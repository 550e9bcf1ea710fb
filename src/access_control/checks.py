"""System checks for the diary access policies."""

from django.contrib.auth import get_user_model
from django.core.checks import Error, register
from django.core.exceptions import FieldDoesNotExist

from access_control.roles import Role


@register()
def user_model_exposes_roles(app_configs, **kwargs):
    """Ensure the user model carries a ``role`` field matching :class:`Role`.

    Every policy reads ``viewer.role``; a user model without the field, or
    with a different set of choices, would silently downgrade everybody to
    anonymous-level capabilities.
    """
    errors: list[Error] = []

    user_model = get_user_model()
    try:
        field = user_model._meta.get_field("role")
    except FieldDoesNotExist:
        return [
            Error(
                f"{user_model.__name__} does not define a role field.",
                obj=user_model,
                id="access_control.E001",
            )
        ]

    declared = {value for value, _ in (field.choices or [])}
    if declared != set(Role.values):
        errors.append(
            Error(
                f"{user_model.__name__}.role choices {sorted(declared)} do not match "
                f"{sorted(Role.values)}.",
                obj=user_model,
                id="access_control.E002",
            )
        )

    return errors
