"""
Core algorithms for synthetic sample construction.

This package contains the quality predicates, sampling strategies, genome
sources, nearest-representative matching and sample writing used by the
pipeline drivers.
"""
