"""
Coordinator: job and task tracking, metrics, and the two-round index pipeline
"""
