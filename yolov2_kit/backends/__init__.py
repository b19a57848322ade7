"""
Optional inference backends for yolov2_kit.

Backends are kept in a separate module so decoding and suppression stay
lightweight and can be used without installing inference runtimes.
"""

from __future__ import annotations

__all__ = []
