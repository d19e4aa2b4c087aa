"""
Locus - Property-Based Testing Suite

Property-based and stateful testing using Hypothesis to check the
registration, resolution, removal and branching rules of the registry.
"""
