"""
VOLaM-RAG: evidence ranking with nullness tracking and stakeholder empathy weighting.
"""
