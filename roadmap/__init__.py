"""
Department roadmaps: layered course layout, derived render state and
completion tracking.
"""

__version__ = "1.0.0"
