"""
core package
"""
