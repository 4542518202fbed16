from hostenv.settings.loader import load_settings, resolve_settings
from hostenv.settings.models import EnvironmentSettings, FailFastSettings, StoreSettings

__all__ = [
    "EnvironmentSettings",
    "FailFastSettings",
    "StoreSettings",
    "load_settings",
    "resolve_settings",
]
