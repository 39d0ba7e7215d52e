"""
Mapping: connection points, layers, connect records and the shape graph builder
"""
