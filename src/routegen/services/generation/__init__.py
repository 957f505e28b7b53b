"""Request generation strategies."""

from .generator import RequestGenerator, generate_permutation, generate_random

__all__ = ["RequestGenerator", "generate_random", "generate_permutation"]
