"""
Input/output: package loading, XML helpers, shape extraction and exporters
"""
