"""Repository layer: parameterised SQL helpers over a SQLAlchemy connection.

Keep functions thin and focused, so services avoid SQL strings.
"""
from __future__ import annotations
