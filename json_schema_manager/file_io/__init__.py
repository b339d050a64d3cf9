from .template_renderer import TemplateRenderer

__all__ = ["TemplateRenderer"]
