"""
Dungeon Assembler

Procedural dungeon layouts built from prefabricated rooms joined door to door.
"""

__version__ = '1.0.0'
