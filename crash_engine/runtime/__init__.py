"""
Runtime state shared across requests.
"""
