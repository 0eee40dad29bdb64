"""FastAPI application module for ProdRec.

Serves single (user, product) score predictions from a trained model.
"""
