"""
Observatory — Systems
"""
