"""
Practice configuration: defaults, YAML catalog loading and validation.
"""
