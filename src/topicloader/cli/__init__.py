"""
Command line interface for topicloader
"""
