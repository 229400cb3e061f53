"""
Trakt Edge Gateway service.
"""
