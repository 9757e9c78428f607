"""
Infrastructure layer
"""
