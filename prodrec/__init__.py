"""ProdRec product recommendation package.

Offline training of a matrix factorization rating model from product review
data, and a FastAPI service that scores single (user, product) pairs.
"""

__version__ = "0.1.0"
