"""Conversational sales assistant core: context, analysis, retrieval, generation and enhancement."""

__version__ = "0.1.0"
