"""
Optional inference backends for labeller_kit.

Backends are kept in a separate module so the decode/NMS core stays lightweight
and can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
