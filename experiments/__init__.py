"""
experiments package: scenario definitions, replication harness and the CSV
summary export that sit on top of the cafeteria model.
"""
