"""
Numerical stages of the PCA pipeline.
"""
