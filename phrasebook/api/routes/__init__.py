"""Route modules, one router per resource."""

from phrasebook.api.routes import phrases, settings, stats

__all__ = ["phrases", "settings", "stats"]
