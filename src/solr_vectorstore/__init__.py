"""Semantic document search on Apache Solr's dense-vector KNN."""

__version__ = "0.1.0"
