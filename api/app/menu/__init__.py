"""Menu domain helpers such as customization resolution."""

from .modifiers import SelectedCustomization, resolve_customizations

__all__ = ["SelectedCustomization", "resolve_customizations"]
