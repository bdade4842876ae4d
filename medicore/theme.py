"""Light/dark theme preference persisted in client storage."""
from enum import Enum
from typing import Callable, List

from medicore import config
from medicore.storage import KeyValueStorage


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class ThemePreference:
    """Reads, toggles and broadcasts the saved theme."""

    def __init__(self, storage: KeyValueStorage, system_prefers_dark: bool = False):
        self.storage = storage
        self.system_prefers_dark = system_prefers_dark
        self._listeners: List[Callable[[Theme], None]] = []

    @property
    def theme(self) -> Theme:
        """Saved theme, else the system preference."""
        saved = self.storage.get(config.THEME_KEY)
        if saved in (Theme.LIGHT.value, Theme.DARK.value):
            return Theme(saved)
        return Theme.DARK if self.system_prefers_dark else Theme.LIGHT

    def set(self, theme: Theme) -> None:
        theme = Theme(theme)
        self.storage.set(config.THEME_KEY, theme.value)
        for listener in list(self._listeners):
            listener(theme)

    def toggle(self) -> Theme:
        new_theme = Theme.LIGHT if self.theme == Theme.DARK else Theme.DARK
        self.set(new_theme)
        return new_theme

    def subscribe(self, listener: Callable[[Theme], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None
