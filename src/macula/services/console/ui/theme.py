"""Macula color theme for the operator console."""

from __future__ import annotations

from dataclasses import dataclass

from rich.style import Style


@dataclass(frozen=True)
class Theme:
    """Named colors shared by every view."""

    primary: str = "rgb(138,43,226)"  # Macula purple
    secondary: str = "rgb(100,149,237)"
    success: str = "rgb(50,205,50)"
    warning: str = "rgb(255,165,0)"
    error: str = "rgb(220,20,60)"
    text: str = "white"
    text_muted: str = "grey62"
    border: str = "grey35"

    def primary_style(self) -> Style:
        return Style(color=self.primary, bold=True)

    def success_style(self) -> Style:
        return Style(color=self.success)

    def warning_style(self) -> Style:
        return Style(color=self.warning)

    def error_style(self) -> Style:
        return Style(color=self.error)

    def muted_style(self) -> Style:
        return Style(color=self.text_muted)

    def border_style(self) -> Style:
        return Style(color=self.border)

    def selected_style(self) -> Style:
        return Style(color=self.text, bgcolor=self.primary, bold=True)

    def percent_style(self, percent: float) -> Style:
        """Green up to 70%, orange up to 90%, red above."""
        if percent > 90.0:
            return self.error_style()
        if percent > 70.0:
            return self.warning_style()
        return self.success_style()


DEFAULT_THEME = Theme()
