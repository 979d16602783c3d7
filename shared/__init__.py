"""
elfshrink Shared Module
=======================

Configuration, logging and console utilities used by the ``shrink``
package and its command-line front end.
"""

from shared.config import ShrinkConfig

__all__ = ["ShrinkConfig"]
