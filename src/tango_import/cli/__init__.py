"""
Command-line interface entry points for tango-import.

Entry points:
- tango-import: Decode the dictionary and frequency sources into JSONL
"""
