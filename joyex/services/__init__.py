"""
services package
"""
