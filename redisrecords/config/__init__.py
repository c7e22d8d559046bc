from redisrecords.config.settings import (
    Settings,
    DevelopmentSettings,
    ProductionSettings,
    TestingSettings,
    get_settings,
    configure_logging,
    settings,
)

__all__ = [
    "Settings",
    "DevelopmentSettings",
    "ProductionSettings",
    "TestingSettings",
    "get_settings",
    "configure_logging",
    "settings",
]
