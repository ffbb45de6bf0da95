"""
Worker-side task execution: function loading, map and reduce executors
"""
