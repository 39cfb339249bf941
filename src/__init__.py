"""
KNIME Extension entry point.

This module imports and registers the ITSA Model node.
"""

from .itsa_model_node import ItsaModelNode

__all__ = ["ItsaModelNode"]
