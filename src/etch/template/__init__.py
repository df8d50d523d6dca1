"""Etch Template package: compiled template objects and their runtime.

Modules:
    core: Template class
    ops: Executable ops (the lowered program)
    evaluator: Expression evaluation and deferred-value resolution
"""

from etch.template.core import Template
from etch.template.evaluator import Frame, resolve

__all__ = [
    "Frame",
    "Template",
    "resolve",
]
