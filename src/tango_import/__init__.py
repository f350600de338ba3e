"""
tango_import - Streaming decoders for Japanese dictionary source dumps.

Modules:
    files: Archive lookup (upward search, gzip and zip containers)
    doctype: <!ENTITY> declarations from a DOCTYPE internal subset
    xmlstream: Incremental pull tokenizer for XML
    jmdict, jmnedict, kanjidic: Record decoders for each dictionary
    frequency: Tab-separated frequency list parsers and loaders

Usage:
    from tango_import import jmdict

    with jmdict.load() as input:
        decoder = jmdict.JMdictDecoder(input)
        for entry in decoder:
            print(entry.sequence, decoder.tags)
"""

__version__ = "0.1.0"
