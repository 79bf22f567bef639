"""YAML configuration and the typed settings built from it."""

__all__ = ["ConfigController", "FeedbackSettings"]


def __getattr__(name: str):
    if name == "ConfigController":
        from config.controller import ConfigController

        return ConfigController
    if name == "FeedbackSettings":
        from config.settings import FeedbackSettings

        return FeedbackSettings
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
