"""
glasspane.core — Configuration, structured event logging, and the
replace-latest value channel shared by both pipelines.
"""
