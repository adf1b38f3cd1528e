"""Test suite for neo4j-index-tool.

This package contains tests for all modules:
- test_models: Pydantic descriptor model
- test_queries: Cypher DDL per server version
- test_catalog: Dump file I/O and canonical ordering
- test_progress: Build monitoring against a fake graph
- test_buckets: Size tiers and batching
- test_orchestrator: Dump, load, rebuild and drop end to end
"""
