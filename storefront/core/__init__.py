"""
Core components shared by every domain.
"""
