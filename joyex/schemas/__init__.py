"""
schemas package
"""
