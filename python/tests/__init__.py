"""
Test suite for the lore search modules.

Test Categories:
- Unit tests: tokenizer, index builder, ranking, cache, partitioner, loaders
- Integration tests: LoreManager lifecycle and the command-line interface
"""
