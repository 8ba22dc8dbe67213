"""
routers package
"""
