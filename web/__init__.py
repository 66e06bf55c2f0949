"""
HTTP layer for the cash audit API.
"""
