"""
AI prompt templates for PrepWise

Contains structured prompts for:
- Question-set generation
- Answer-set evaluation
"""

from prepwise.prompts.generator import GeneratorPrompts
from prepwise.prompts.evaluator import EvaluatorPrompts

__all__ = [
    "GeneratorPrompts",
    "EvaluatorPrompts",
]
