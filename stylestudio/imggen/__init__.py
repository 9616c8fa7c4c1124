"""Prompt building and image generation utilities."""

from .prompt_builder import GenerationMode, LayerHint, LayerInput, PromptBuilder

__all__ = ["GenerationMode", "LayerHint", "LayerInput", "PromptBuilder"]
