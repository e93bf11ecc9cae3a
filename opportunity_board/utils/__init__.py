__all__ = [
    "verify_password",
    "get_password_hash",
    "create_access_token",
    "get_current_user",
    "get_optional_user",
    "require_admin",
    "oauth2_scheme",
    "is_email_enabled",
    "send_email",
    "is_telegram_enabled",
    "send_telegram_message",
    "utcnow",
]


def __getattr__(name):
    if name in {
        "verify_password",
        "get_password_hash",
        "create_access_token",
        "get_current_user",
        "get_optional_user",
        "require_admin",
        "oauth2_scheme",
    }:
        from . import security as _security
        return getattr(_security, name)
    if name in {"is_email_enabled", "send_email"}:
        from . import email as _email
        return getattr(_email, name)
    if name in {"is_telegram_enabled", "send_telegram_message"}:
        from . import telegram as _telegram
        return getattr(_telegram, name)
    if name == "utcnow":
        from .clock import utcnow
        return utcnow
    raise AttributeError(f"module 'opportunity_board.utils' has no attribute '{name}'")
