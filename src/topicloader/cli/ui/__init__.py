"""
Rich display components
"""
