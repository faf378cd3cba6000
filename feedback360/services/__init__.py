"""Core services: fingerprinting, grouping, aggregation, insight generation.

The hasher, normalizer, grouper and aggregation engine are synchronous and
pure; only ``LLMInsightGenerator`` performs I/O.
"""
