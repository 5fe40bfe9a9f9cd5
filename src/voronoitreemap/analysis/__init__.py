"""
Computational Geometry
======================
The geometric machinery behind a single power diagram.

Why is this package needed?
---------------------------
1. Hull: Incremental 3D convex hull of the lifted sites.
2. Clipping: Intersection of two convex polygons.
3. Power diagram: Reads the lower hull off as cells and bounds them by the region.
"""
