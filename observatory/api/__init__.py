"""
Observatory — API Surface
"""
