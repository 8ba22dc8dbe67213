"""
Joyex Studio: AI image edit and product replace service
"""
__version__ = "1.0.0"
