"""
SceneMCP command line entry points
"""
