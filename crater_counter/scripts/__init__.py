"""
Command line scripts for crater_counter.
"""
