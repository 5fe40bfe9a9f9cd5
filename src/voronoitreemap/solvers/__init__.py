"""
Treemap Solver Engine
=====================
The iterative layout of the treemap.

Why is this package needed?
---------------------------
1. Single layer: Adapts site weights and positions until the cell areas match the attributes.
2. Tree: Applies the single-layer solve at every internal node and collects diagnostics.
"""
