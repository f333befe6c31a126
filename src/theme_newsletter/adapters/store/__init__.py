"""Theme store adapters."""

from theme_newsletter.adapters.store.yaml_theme_store import YamlThemeStore, is_valid_email

__all__ = ["YamlThemeStore", "is_valid_email"]
