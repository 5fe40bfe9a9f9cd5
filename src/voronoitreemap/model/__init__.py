"""
The MODEL layer contains the pure data structures of the layout.
It deals with geometry primitives, sites of the power diagram and trees.
It has NO knowledge of the algorithms that operate on them.
"""
