from .renderer import BasicPromptTemplateRenderer, extract_variable_names

__all__ = ["BasicPromptTemplateRenderer", "extract_variable_names"]
