"""
Shrink Core
===========

Footprint computation, header rewriting, commit logic and the engine
that chains them.
"""
