"""SPDX 2.x document model and codecs.

A :class:`~spdxgraph.document.Document` is an element graph whose links are
all expressed as relationships. The codecs of :mod:`spdxgraph.codec` read and
write it in the tag-value, JSON, YAML, RDF/XML and spreadsheet formats.
"""
