"""
kmlscope - tolerant KML/KMZ parsing for map viewers.

This package reads Google Earth KML documents and KMZ archives, including
damaged ones, into a flat list of styled Point, LineString and Polygon
elements with derived lengths and areas.
"""

__version__ = "0.1.0"
