"""Machine learning module for ProdRec.

Contains data loading and cleaning, the matrix factorization trainer,
evaluation, single-pair prediction and model persistence.
"""
