import os


def get_settings_module() -> str:
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "school_portal.settings.production"

    if env in {"test", "testing"}:
        return "school_portal.settings.testing"

    return "school_portal.settings.development"
