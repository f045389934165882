"""
CLI helpers
"""
