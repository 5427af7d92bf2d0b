"""
Prompt construction for the generative providers.
"""
