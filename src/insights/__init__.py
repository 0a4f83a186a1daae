"""
Insight Builders
================
Turn computed patterns into user-facing guidance.

Modules:
  recommendations - ordered rules, sorted by emphasis
  reasoning_tree  - explainable root/branch/leaf evidence tree
"""
