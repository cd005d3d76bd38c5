"""Exam material: segmentation, retrieval and context assembly."""
